# -*- coding: utf-8 -*-
"""NutriSnap: meal log storage, CSV import/export and nutrition trends."""

__version__ = "0.1.0"
