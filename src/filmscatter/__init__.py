"""
Multiple-Coulomb-scattering width estimation from radiochromic film scans.

Each scanned film is reduced to a single Gaussian beam width (sigma) by
locating the dose centroid, building a radial intensity profile and fitting
a linearized Gaussian. Paired air/material sigmas are then combined into
scattering angles and compared against the Highland prediction.
"""

__version__ = "0.1.0"
