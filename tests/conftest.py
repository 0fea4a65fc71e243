import pytest

from loaders import make_phantom_study


@pytest.fixture(scope="module")
def phantom_study():
    """512x512x100 CT with a 128x128x50 dose grid peaking at 110% of 60 Gy."""
    return make_phantom_study()


@pytest.fixture
def small_study():
    """Reduced phantom that keeps the CT/dose z relationship of the full one."""
    return make_phantom_study(
        ct_size=(64, 64, 20),
        ct_resolution=(5.0, 5.0, 2.5),
        dose_size=(32, 32, 10),
        dose_resolution=(10.0, 10.0, 3.0),
    )
