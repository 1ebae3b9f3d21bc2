# -*- coding: utf-8 -*-
# Part of Inphms, see License file for full copyright and licensing details.

""" Server side names (models, workflow signals) known by the client

"""
from . import registry

from inphms_rpc.modules.registry import Registry
