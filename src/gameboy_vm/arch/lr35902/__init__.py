# src/gameboy_vm/arch/lr35902/__init__.py
"""
Sharp LR35902 (Game Boy CPU) Architecture Package
"""
