"""
Procedural Deadline Computation Engine
Deterministic Brazilian procedural deadline calculation with a verifiable audit trail
"""

__version__ = "1.0.0"
__author__ = "Legal Tech Solutions"
__description__ = "Court-calendar aware deadline computation (CPC arts. 219, 220, 224, 229, 231)"
