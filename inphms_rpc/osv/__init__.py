# -*- coding: utf-8 -*-
# Part of Inphms, see License file for full copyright and licensing details.

from . import expression
