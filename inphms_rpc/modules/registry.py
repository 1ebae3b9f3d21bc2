# -*- coding: utf-8 -*-
# Part of Inphms, see License file for full copyright and licensing details.

"""Models Registry
"""
from __future__ import annotations

import logging
import threading
import time
import typing

from inphms_rpc.exceptions import MissingError
from inphms_rpc.tools import as_id
from inphms_rpc.tools.cache import STAT
from inphms_rpc.tools.func import locked, synchronized

if typing.TYPE_CHECKING:
    from inphms_rpc.service.command import Command

_logger = logging.getLogger(__name__)


class Registry:
    """ Names known by a particular server database.

    The registry caches the model names and the workflow signals of one
    database, so that every adapter does not have to ask the server again.
    There is one registry instance per server database, shared by all the
    sessions opened on it; ``Registry.new(name)`` gives a private one.

    Caches are filled lazily and reloaded in full whenever a name is not
    found, since modules may have been installed in the meantime. A name
    that is still missing after the reload is an error, and is not
    remembered as missing.
    """
    _lock = threading.RLock()
    registries: dict[str, Registry] = {}

    def __new__(cls, name):
        """ Return the registry for the given database key. """
        assert name, "Missing registry name"
        with cls._lock:
            try:
                return cls.registries[name]
            except KeyError:
                return cls.new(name)

    def init(self, name):
        self.name = name
        self._cache_lock = threading.RLock()
        # snapshots, replaced as a whole on reload
        self._models: frozenset[str] = frozenset()
        self._signals: frozenset[tuple[str, str]] = frozenset()
        # bumped on every reload, so that waiting threads can tell whether
        # the cache was refreshed while they were blocked
        self._models_generation = 0
        self._signals_generation = 0

    @classmethod
    @locked
    def delete(cls, name):
        """ Forget the registry of the given database key. """
        cls.registries.pop(name, None)

    @classmethod
    @locked
    def new(cls, name):
        """ Create, register and return a new registry. """
        registry = object.__new__(cls)
        registry.init(name)
        cls.registries[name] = registry
        return registry

    def __repr__(self):
        return "<%s %s: %d models, %d signals>" % (
            type(self).__name__, self.name, len(self._models), len(self._signals))

    def __contains__(self, model_name):
        return model_name in self._models

    def __len__(self):
        return len(self._models)

    def __iter__(self):
        return iter(sorted(self._models))

    #
    # Model names
    #
    def check_model(self, command: Command, model_name: str) -> None:
        """ Make sure ``model_name`` exists on the server.

        :raise MissingError: if the model is unknown, even after reloading
            the model names
        """
        stat = STAT[(self.name, 'models')]
        stat.cache_name = 'models'
        generation = self._models_generation
        if model_name in self._models:
            stat.hit += 1
            return
        stat.miss += 1
        self._refresh_models(command, generation)
        if model_name not in self._models:
            raise MissingError("Could not find model with name '%s'" % model_name)

    @synchronized('_cache_lock')
    def _refresh_models(self, command: Command, generation: int) -> None:
        if generation != self._models_generation:
            # reloaded by another thread while we were waiting for the lock
            return
        t0 = time.time()
        ids = command.search_object('ir.model', [])
        records = command.read_object('ir.model', ids, ['model']) if ids else []
        self._models = frozenset(record['model'] for record in records)
        self._models_generation += 1

        stat = STAT[(self.name, 'models')]
        stat.reload += 1
        stat.gen_time += time.time() - t0
        _logger.info("%s: loaded %d model names in %.3fs", self.name, len(self._models), time.time() - t0)

    #
    # Workflow signals
    #
    def check_signal(self, command: Command, model_name: str, signal: str) -> None:
        """ Make sure the workflow of ``model_name`` accepts ``signal``.

        :raise MissingError: if the signal is unknown, even after reloading
            the workflow transitions
        """
        stat = STAT[(self.name, 'signals')]
        stat.cache_name = 'signals'
        generation = self._signals_generation
        if (model_name, signal) in self._signals:
            stat.hit += 1
            return
        stat.miss += 1
        self._refresh_signals(command, generation)
        if (model_name, signal) not in self._signals:
            raise MissingError("Could not find signal with name '%s' for object '%s'" % (signal, model_name))

    @synchronized('_cache_lock')
    def _refresh_signals(self, command: Command, generation: int) -> None:
        if generation != self._signals_generation:
            return
        t0 = time.time()
        ids = command.search_object('workflow.transition', [])
        transitions = command.read_object('workflow.transition', ids, ['signal', 'wkf_id']) if ids else []

        workflow_ids = sorted({as_id(t['wkf_id']) for t in transitions if t.get('wkf_id')})
        workflows = command.read_object('workflow', workflow_ids, ['osv']) if workflow_ids else []
        model_by_workflow = {workflow['id']: workflow['osv'] for workflow in workflows}

        self._signals = frozenset(
            (model_by_workflow[as_id(t['wkf_id'])], t['signal'])
            for t in transitions
            if t.get('wkf_id') and t.get('signal') and as_id(t['wkf_id']) in model_by_workflow
        )
        self._signals_generation += 1

        stat = STAT[(self.name, 'signals')]
        stat.reload += 1
        stat.gen_time += time.time() - t0
        _logger.info("%s: loaded %d workflow signals in %.3fs", self.name, len(self._signals), time.time() - t0)

    @synchronized('_cache_lock')
    def clear(self):
        """ Drop the cached names; they are reloaded on next use. """
        self._models = frozenset()
        self._signals = frozenset()
