"""
Consolidation engine for the FIX repository.

This module provides functionality to:
1. Track when fields, enum values, messages and components first appeared
2. Detect real layout changes of messages and components between versions
3. Derive deprecation from the versions an entity disappears in
4. Merge supplementary names, descriptions and glossary text

Based on the FIX repository "Basic" XML files (FIX.4.0 to FIX.5.0SP2).
"""

__version__ = "0.1.0"
