# -*- coding: utf-8 -*-
# Part of Inphms. See LICENSE file for full copyright and licensing details.

""" INPHMS RPC client library. """

import sys
MIN_PY_VERSION = (3, 10)
assert sys.version_info > MIN_PY_VERSION, f"Outdated python version detected, Inphms RPC requires Python >= {'.'.join(map(str,  MIN_PY_VERSION))} to run."


# ----------------------------------------------------------
# Imports
# ----------------------------------------------------------
from . import release
from . import exceptions
from . import tools
from . import netsvc

## MODEL CLASSES
from . import fields
from . import models
from . import osv
from . import modules
from . import service
from . import api

## OTHER IMPORT REQUIRED
from . import http
from . import cli

# ----------------------------------------------------------
# Shortcuts
# ----------------------------------------------------------
from .http import Session
from .osv.expression import FilterCollection, FilterOperator
from .service.model import ObjectAdapter
