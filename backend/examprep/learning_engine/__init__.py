"""
Learning Engine Module.

Contains the IRT computation core:
- 3PL probability and Fisher information
- Ability estimation and progression
- Item calibration
- Adaptive item selection

Numerical constants live in learning_engine.config with documented provenance.
"""
