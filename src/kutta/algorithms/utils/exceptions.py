"""
Custom exceptions for the algorithms package.
"""

from typing import Optional


class KuttaError(Exception):
    """Base exception for Kutta errors.
    
    Parameters
    ----------
    message : str
        The error message.
    """

    def __init__(self, message: str):
        super().__init__(message)


class ConfigurationError(KuttaError, ValueError):
    """Raised when a method description or integrator option is malformed.

    Typical causes are Butcher tables whose rows do not line up with their
    weight vectors, unknown method names, or an embedded step requested on a
    table without secondary weights.

    Parameters
    ----------
    message : str
        The error message.
    """

    def __init__(self, message: str):
        super().__init__(message)


class ConvergenceError(KuttaError):
    """Raised when an algorithm fails to converge.
    
    Parameters
    ----------
    message : str
        The error message.
    """

    def __init__(self, message: str):
        super().__init__(message)


class NonConvergenceError(ConvergenceError):
    """Raised when the step-size controller cannot meet its tolerance.

    Parameters
    ----------
    message : str
        The error message.
    step : float or None, optional
        Last step size that was attempted.
    error_ratio : float or None, optional
        Ratio between the relative error of the last attempt and the
        tolerance.
    """

    def __init__(self, message: str, step: Optional[float] = None, error_ratio: Optional[float] = None):
        super().__init__(message)
        self.step = step
        self.error_ratio = error_ratio
