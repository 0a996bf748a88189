"""covtree — JaCoCo coverage reports as typed coverage trees."""

__version__ = "0.1.0"
