# -*- coding: utf-8 -*-
"""Trends domain (day-bucketed aggregation over the meal log)."""
