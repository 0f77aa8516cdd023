"""
Tests for the optimizer registry.
"""

import pytest

from activecma.optimizers import (
    ActiveCMAES,
    ApproxActiveCMAES,
    ApproxCMAES,
    CMAES,
    OptimizerRegistry,
    get_optimizer,
    get_registry,
    list_optimizers,
    register_optimizer,
)


class TestRegistry:
    def test_builtin_names(self):
        assert OptimizerRegistry().names() == [
            "active-cmaes", "approx-active-cmaes", "approx-cmaes", "cmaes"
        ]

    @pytest.mark.parametrize("name,cls", [
        ("cmaes", CMAES),
        ("active-cmaes", ActiveCMAES),
        ("approx-cmaes", ApproxCMAES),
        ("approx-active-cmaes", ApproxActiveCMAES),
    ])
    def test_lookup(self, name, cls):
        assert OptimizerRegistry().get(name) is cls

    def test_case_insensitive(self):
        assert OptimizerRegistry().get("Active-CMAES") is ActiveCMAES

    def test_unknown(self):
        registry = OptimizerRegistry()
        assert registry.get("nelder-mead") is None
        with pytest.raises(KeyError):
            registry.create("nelder-mead")

    def test_create_passes_options(self):
        optimizer = OptimizerRegistry().create("active-cmaes", population_size=32, seed=3)
        assert isinstance(optimizer, ActiveCMAES)
        assert optimizer.config.population_size == 32

    def test_register_custom(self):
        class TunedCMAES(CMAES):
            _name = "tuned-cmaes"

        registry = OptimizerRegistry()
        registry.register("tuned-cmaes", TunedCMAES)
        assert registry.get("tuned-cmaes") is TunedCMAES
        assert "cmaes" in registry.names()


class TestConvenienceFunctions:
    def test_global_registry_singleton(self):
        assert get_registry() is get_registry()

    def test_get_optimizer(self):
        optimizer = get_optimizer("approx-cmaes", seed=1)
        assert isinstance(optimizer, ApproxCMAES)
        assert optimizer.name == "approx-cmaes"

    def test_list_optimizers(self):
        info = list_optimizers()
        assert info["cmaes"]["family"] == "evolutionary"
        assert info["active-cmaes"]["active"] is True

    def test_register_optimizer(self):
        class Probe(CMAES):
            _name = "probe-cmaes"

        register_optimizer("probe-cmaes", Probe)
        assert isinstance(get_optimizer("probe-cmaes"), Probe)
