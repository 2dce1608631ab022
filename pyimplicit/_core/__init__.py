"""
Core algorithms: transfer functions, families, learning rates, solver.
"""

from .transfer import (
    Transfer,
    IdentityTransfer,
    ExpTransfer,
    LogisticTransfer,
    get_transfer,
    list_available_transfers,
)
from .families import (
    FamilyName,
    Family,
    Gaussian,
    Poisson,
    Binomial,
    get_family,
    list_available_families,
)
from .learning_rate import (
    LearningRate,
    ScalarLearningRate,
    AdaptiveLearningRate,
    get_learning_rate,
    list_available_learning_rates,
)
from .score import ScoreCoefficient, ImplicitEquation
from .solver import DEFAULT_MAX_ITER, DEFAULT_XTOL, SolverResult, solve_implicit


def print_catalog_info():
    """Print available transfers, families and learning rates (diagnostic)."""
    print("PyImplicit Catalog")
    print("=" * 50)

    print("\nTransfer Functions:")
    for name in list_available_transfers():
        print(f"  {name}")

    print("\nModel Families:")
    for name in list_available_families():
        family = get_family(name)
        print(f"  {name:<10} canonical transfer: {family.canonical_transfer}")

    print("\nLearning Rates:")
    print("  scalar     scale·γ·(1 + α·γ·t)^(-c) · I")
    print("  adaptive   inverse diagonal Fisher information")

    print("\nSolver:")
    print(f"  max_iter={DEFAULT_MAX_ITER}, xtol={DEFAULT_XTOL:.3g}")


__all__ = [
    "Transfer",
    "IdentityTransfer",
    "ExpTransfer",
    "LogisticTransfer",
    "get_transfer",
    "list_available_transfers",
    "FamilyName",
    "Family",
    "Gaussian",
    "Poisson",
    "Binomial",
    "get_family",
    "list_available_families",
    "LearningRate",
    "ScalarLearningRate",
    "AdaptiveLearningRate",
    "get_learning_rate",
    "list_available_learning_rates",
    "ScoreCoefficient",
    "ImplicitEquation",
    "DEFAULT_MAX_ITER",
    "DEFAULT_XTOL",
    "SolverResult",
    "solve_implicit",
    "print_catalog_info",
]
