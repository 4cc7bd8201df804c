"""
Regression backends.

Available backends:
    - CPUIRLSBackend: IRLS (Fisher scoring) with pivoted QR inner solve
"""

from poisglm.regression.backends.cpu_glm import CPUIRLSBackend

__all__ = ["CPUIRLSBackend"]
