"""Core configuration, paths and error taxonomy.

Submodules are imported directly (``hardhat_desk.core.config``) so the
logger can depend on ``core.global_paths`` without an import cycle.
"""
