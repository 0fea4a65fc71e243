"""
Loaders Package

Contains study loading strategies: DICOM folders and synthetic phantoms.
"""

from .dicom_loader import (
    load_study,
    ct_from_datasets,
    dose_from_dataset,
    plan_from_dataset,
    grid_from_ct_datasets,
    grid_from_dose_dataset,
)
from .phantom import (
    PhantomCTSource,
    PhantomDoseSource,
    make_phantom_study,
)

__all__ = [
    'load_study',
    'ct_from_datasets',
    'dose_from_dataset',
    'plan_from_dataset',
    'grid_from_ct_datasets',
    'grid_from_dose_dataset',
    'PhantomCTSource',
    'PhantomDoseSource',
    'make_phantom_study',
]
