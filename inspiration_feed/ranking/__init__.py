"""
Inspiration feed ranking engine.

Leaf to root: affinity → scorer → sorter → overlay → assembler → ads, with
mutations and session holding the per-viewer state.
"""
