# Part of Inphms. See LICENSE file for full copyright and licensing details.

from .command import Command, main

from . import query
