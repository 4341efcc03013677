"""Tests for the denoising drivers."""

import pytest
import torch

from mcdenoise import scenarios
from mcdenoise.optim import LoggingType, SolverOptions

QUIET = SolverOptions(logging_type=LoggingType.SILENT)


def test_ds_denoise(capsys, generator):
    result = scenarios.ds_denoise(n=4, options=QUIET, generator=generator)

    out = capsys.readouterr().out
    assert result.on_manifold
    assert torch.all(result.target >= 0)
    assert result.summary.final_cost <= result.summary.initial_cost
    assert "Given Matrix:" in out
    assert "Initial Solution:" in out
    assert "Final Solution:" in out
    assert "Is X on Manifold: True" in out
    assert "Termination:" in out


def test_stiefel_denoise(capsys, generator):
    result = scenarios.stiefel_denoise(n=5, k=3, options=QUIET, generator=generator)

    out = capsys.readouterr().out
    assert result.on_manifold
    assert result.solution.shape == (5, 3)
    assert "Is X on Manifold: True" in out
    assert "Solution by projection" in out


def test_default_options_print_progress(capsys, generator):
    scenarios.stiefel_denoise(n=3, k=3, generator=generator)

    assert "   0: f:" in capsys.readouterr().out


@pytest.mark.slow
def test_main(capsys):
    assert scenarios.main() == 0

    out = capsys.readouterr().out
    assert out.count("Is X on Manifold: True") == 2
