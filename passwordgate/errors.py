from __future__ import annotations


class PolicyConfigurationError(ValueError):
    """
    Raised for programmer misuse that cannot be reported as a validation outcome
    (unknown option names, a custom tolerance function returning garbage, ...).
    A bad password never raises this.
    """
