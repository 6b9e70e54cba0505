# -*- coding: utf-8 -*-
"""Meals domain: normalization, persisted meal log, analysis port."""
