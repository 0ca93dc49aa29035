"""Seed fixtures for the reference tables.

One CSV per table, plus ``labels/<locale>.csv`` for translations. Values
keep the exact codes and spellings of the source standards.
"""

import os

SEED_DIR = os.path.dirname(os.path.abspath(__file__))
