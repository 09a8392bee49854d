"""
Core domain definitions: phases, players, rooms and errors.
"""
