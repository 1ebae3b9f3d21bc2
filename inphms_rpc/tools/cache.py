# -*- coding: utf-8 -*-
# Part of Inphms, see License file for full copyright and licensing details.

from collections import defaultdict
import logging

_logger = logging.getLogger(__name__)


class registry_cache_counter(object):
    """ Statistic counters for registry caches. """
    __slots__ = ['hit', 'miss', 'reload', 'gen_time', 'cache_name']

    def __init__(self):
        self.hit = 0
        self.miss = 0
        self.reload = 0
        self.gen_time = 0
        self.cache_name = None

    @property
    def ratio(self):
        return 100.0 * self.hit / (self.hit + self.miss or 1)

    def __repr__(self):
        return "<%s %s hit=%d miss=%d reload=%d (%.1f%%) %.3fs>" % (
            type(self).__name__, self.cache_name, self.hit, self.miss,
            self.reload, self.ratio, self.gen_time,
        )

# statistic counters dictionary, maps (registry name, cache name) to counter
STAT = defaultdict(registry_cache_counter)


def log_registry_cache_stats(level=logging.INFO):
    """ Log statistics of registry caches. """
    for key, stat in sorted(STAT.items(), key=lambda item: repr(item[0])):
        _logger.log(level, "%s: %r", key[0], stat)
