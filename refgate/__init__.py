"""
refgate: validates the commits a push or a merge proposal introduces.
"""
