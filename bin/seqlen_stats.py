#!/usr/bin/env python3
"""
seqlen_stats.py - run the seqlen command line from a source checkout

Usage:
    seqlen_stats.py reads.fastq.gz
    seqlen_stats.py assembly.fa -n 10 -n 50 -n 90 -o stats.json
"""

import sys
from pathlib import Path

# Add repository root so the package imports without installation
bin_dir = Path(__file__).parent
sys.path.insert(0, str(bin_dir.parent))

from seqlen.cli import main  # noqa: E402


if __name__ == "__main__":
    sys.exit(main())
