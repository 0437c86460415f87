# -- Shared Test Fixtures -- #

from pathlib import Path

import numpy as np
import pytest

from sphFluid2D.sph.protocols import ClassicalSphConfig, ViscoelasticSphConfig


DATA_DIR = Path(__file__).parent / 'data'


@pytest.fixture
def dataDir() -> Path:
    return DATA_DIR


@pytest.fixture
def weightlessClassicalConfig() -> ClassicalSphConfig:
    '''Classical defaults with gravity switched off.'''
    return ClassicalSphConfig(gravity=np.zeros(2))


@pytest.fixture
def weightlessViscoelasticConfig() -> ViscoelasticSphConfig:
    '''Viscoelastic defaults with gravity switched off.'''
    return ViscoelasticSphConfig(gravity=np.zeros(2))
