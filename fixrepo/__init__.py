"""
fixrepo: consolidates the per-version FIX repository into one cross-version model.
"""
