"""
Optimizer registry.

Provides centralized registration and lookup of optimizer classes by name,
so callers can pick an engine from configuration ("active-cmaes").
"""

from typing import Any, Dict, List, Optional, Type, TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from .base import Optimizer

logger = logging.getLogger(__name__)


class OptimizerRegistry:
    """
    Registry for optimizer classes.

    Provides:
    - Optimizer registration
    - Lookup and construction by name (case-insensitive)
    - Listing of registered optimizers
    - Lazy initialization of the built-in engines

    Usage:
        registry = OptimizerRegistry()
        optimizer = registry.create("active-cmaes", population_size=32)
    """

    def __init__(self):
        """Initialize empty registry."""
        self._optimizers: Dict[str, Type["Optimizer"]] = {}
        self._initialized = False

    def register(self, name: str, optimizer_cls: Type["Optimizer"]) -> None:
        """
        Register an optimizer class.

        Args:
            name: Lookup name
            optimizer_cls: Optimizer subclass, constructed with keyword options
        """
        self._optimizers[name.lower()] = optimizer_cls
        logger.debug(f"Registered optimizer: {name}")

    def get(self, name: str) -> Optional[Type["Optimizer"]]:
        """
        Get optimizer class by name.

        Args:
            name: Optimizer name

        Returns:
            Optimizer class or None if not found
        """
        self._ensure_initialized()
        return self._optimizers.get(name.lower())

    def create(self, name: str, **options: Any) -> "Optimizer":
        """
        Construct a registered optimizer.

        Args:
            name: Optimizer name
            **options: Constructor arguments

        Raises:
            KeyError: If no optimizer is registered under ``name``
        """
        optimizer_cls = self.get(name)
        if optimizer_cls is None:
            raise KeyError(f"Unknown optimizer '{name}'. Available: {self.names()}")
        return optimizer_cls(**options)

    def names(self) -> List[str]:
        """Registered optimizer names."""
        self._ensure_initialized()
        return sorted(self._optimizers)

    def list_all(self) -> Dict[str, Dict[str, Any]]:
        """
        List all optimizers with their default configuration.

        Returns:
            Dict mapping optimizer name to info dict
        """
        self._ensure_initialized()
        return {name: cls().get_info() for name, cls in self._optimizers.items()}

    def _ensure_initialized(self) -> None:
        """Lazy initialization of the built-in optimizers."""
        if not self._initialized:
            self._initialized = True
            self._initialize_optimizers()

    def _initialize_optimizers(self) -> None:
        """Register the built-in CMA-ES engines."""
        # Import here to avoid circular imports
        from .cmaes import CMAES, ActiveCMAES, ApproxCMAES, ApproxActiveCMAES

        for optimizer_cls in (CMAES, ActiveCMAES, ApproxCMAES, ApproxActiveCMAES):
            self.register(optimizer_cls._name, optimizer_cls)

        logger.info(f"Initialized {len(self._optimizers)} optimizers")


# Global registry instance
_REGISTRY: Optional[OptimizerRegistry] = None


def get_registry() -> OptimizerRegistry:
    """Get the global optimizer registry."""
    global _REGISTRY
    if _REGISTRY is None:
        _REGISTRY = OptimizerRegistry()
    return _REGISTRY


def get_optimizer(name: str, **options: Any) -> "Optimizer":
    """
    Construct an optimizer by name (convenience function).

    Args:
        name: Optimizer name (e.g. "cmaes", "active-cmaes")
        **options: Constructor arguments (CMAESConfig fields, policies, callbacks)

    Returns:
        Optimizer instance
    """
    return get_registry().create(name, **options)


def list_optimizers() -> Dict[str, Dict[str, Any]]:
    """List all optimizers with their info (convenience function)."""
    return get_registry().list_all()


def register_optimizer(name: str, optimizer_cls: Type["Optimizer"]) -> None:
    """Register a custom optimizer class (convenience function)."""
    get_registry().register(name, optimizer_cls)
