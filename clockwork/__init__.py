"""
Discrete-time rotation simulator.

Core modules:
- common: time units, constants and errors
- actions: action catalog
- core: clock, player and the simulation engine
- rotation: decision policies
- config: run configuration
"""
