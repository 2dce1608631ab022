"""
PyImplicit: implicit stochastic gradient descent for online GLMs.

Copyright (C) 2024 SGCX
Licensed under GPL-3.0
"""

__version__ = "1.0.0"

# Import main user-facing API
from .sgd import ImplicitSGD, StepResult, implicit_sgd
from .glm import ImplicitGLM, GLMResult, glm
from .experiment import Experiment
from .data import DataPoint, Dataset, DatasetSize, OnlineOutput

# Catalog utilities (for advanced users)
from ._core import (
    get_transfer,
    get_family,
    get_learning_rate,
    list_available_transfers,
    list_available_families,
    list_available_learning_rates,
    print_catalog_info,
)
from .exceptions import (
    ImplicitSGDError,
    ConfigurationError,
    DegenerateInputError,
    SolverNonConvergence,
    NumericDomainError,
    EmptyTrajectoryError,
    ConvergenceWarning,
)

__all__ = [
    'ImplicitSGD',
    'StepResult',
    'implicit_sgd',
    'ImplicitGLM',
    'GLMResult',
    'glm',
    'Experiment',
    'DataPoint',
    'Dataset',
    'DatasetSize',
    'OnlineOutput',
    'get_transfer',
    'get_family',
    'get_learning_rate',
    'list_available_transfers',
    'list_available_families',
    'list_available_learning_rates',
    'print_catalog_info',
    'ImplicitSGDError',
    'ConfigurationError',
    'DegenerateInputError',
    'SolverNonConvergence',
    'NumericDomainError',
    'EmptyTrajectoryError',
    'ConvergenceWarning',
]
