# -*- coding: utf-8 -*-
from orioncp.solarwinds import SolarWinds

__version__ = "1.0.0"
