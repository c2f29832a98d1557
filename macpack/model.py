# Copyright 2026 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.
"""Packaging Model Objects

This module contains classes that encapsulate data about the packaging and
signing process.
"""

import asyncio
import collections
import copy
import enum
import inspect

from macpack import logger

DMG = 'dmg'
MAS = 'mas'
DEFAULT = 'default'
ARCHIVE_FORMATS = ('zip', '7z', 'tar.gz', 'tar.bz2', 'tar.xz')
TARGETS = (DEFAULT, DMG, MAS) + ARCHIVE_FORMATS

# The platform value passed to the signer for builds distributed outside of
# the Mac App Store.
PLATFORM_DARWIN = 'darwin'


class CertificateType(enum.Enum):
    """The classes of signing certificates issued by Apple. Every identity in a
    keychain is named after its class, e.g.
    "Developer ID Application: Jane Doe (TEAMID)".
    """
    DEVELOPER_ID_APPLICATION = 'Developer ID Application'
    DEVELOPER_ID_INSTALLER = 'Developer ID Installer'
    MAC_APP_STORE_APPLICATION = '3rd Party Mac Developer Application'
    MAC_APP_STORE_INSTALLER = '3rd Party Mac Developer Installer'

    @property
    def prefix(self):
        return '{}:'.format(self.value)

    def __str__(self):
        return self.value


"""Signing material resolved once per packaging run.

`name` is the app signing identity, `installer_name` the identity used to sign
installer packages and `keychain` the ephemeral keychain holding both, if one
was created.
"""
CodeSigningInfo = collections.namedtuple(
    'CodeSigningInfo', ['name', 'installer_name', 'keychain'],
    defaults=(None, None))

"""A file produced by the run: its absolute |path| and the name under which it
should be published.
"""
ArtifactRecord = collections.namedtuple('ArtifactRecord',
                                        ['path', 'suggested_name'])


class SignOptions(object):
    """The parameters of one invocation of the signer."""

    def __init__(self,
                 app,
                 platform,
                 identity=None,
                 keychain=None,
                 entitlements=None,
                 entitlements_inherit=None,
                 **extra):
        """
        Args:
            app: Path to the app bundle to sign.
            platform: `PLATFORM_DARWIN`, or `MAS` for the Mac App Store build.
            identity: The signing identity name.
            keychain: The keychain to look |identity| up in, or None for the
                default search list.
            entitlements: Path to the entitlements for the outer bundle.
            entitlements_inherit: Path to the entitlements for nested code.
            extra: Further signer options, such as `hardened_runtime`.
        """
        self.app = app
        self.platform = platform
        self.identity = identity
        self.keychain = keychain
        self.entitlements = entitlements
        self.entitlements_inherit = entitlements_inherit
        self.extra = extra

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __repr__(self):
        return 'SignOptions(app={0.app}, platform={0.platform}, ' \
                'identity={0.identity}, keychain={0.keychain}, ' \
                'entitlements={0.entitlements}, ' \
                'entitlements_inherit={0.entitlements_inherit}, ' \
                'extra={0.extra})'.format(self)


class FlatOptions(object):
    """The parameters for flattening a signed app into an installer package.
    """

    def __init__(self, app, pkg, identity, platform, keychain=None):
        self.app = app
        self.pkg = pkg
        self.identity = identity
        self.platform = platform
        self.keychain = keychain

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __repr__(self):
        return 'FlatOptions(app={0.app}, pkg={0.pkg}, ' \
                'identity={0.identity}, platform={0.platform}, ' \
                'keychain={0.keychain})'.format(self)


class CleanupTasks(object):
    """CleanupTasks collects deferred actions, such as deleting an ephemeral
    keychain, that must run at the end of a packaging run whether or not the
    run succeeded.
    """

    def __init__(self):
        self._tasks = []
        self._done = False

    def add(self, task):
        """Registers a zero-argument callable. It may return an awaitable."""
        self._tasks.append(task)

    def __len__(self):
        return len(self._tasks)

    async def run_all(self):
        """Runs every registered task once, in registration order. A failing
        task is logged and does not prevent the remaining ones from running.
        Subsequent calls do nothing.
        """
        if self._done:
            return
        self._done = True
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            try:
                result = task()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.warning('Cleanup task %r failed', task, exc_info=True)


def deep_merge(*dicts):
    """Merges |dicts| into a new dictionary. Nested dictionaries are merged
    recursively, any other value (lists included) is replaced. Later arguments
    take precedence and None arguments are skipped.
    """
    result = {}
    for d in dicts:
        if d is None:
            continue
        for key, value in d.items():
            if isinstance(value, dict) and isinstance(result.get(key), dict):
                result[key] = deep_merge(result[key], value)
            elif isinstance(value, dict):
                result[key] = deep_merge(value)
            elif isinstance(value, list):
                result[key] = copy.deepcopy(value)
            else:
                result[key] = value
    return result


def pick(o, keys):
    """Returns a dictionary with the values of |o| from the keys specified
    in |keys|.

    Args:
        o: object or dictionary, An object to take values from.
        keys: list of string, Keys to pick from |o|.

    Returns:
        A new dictionary with keys from |keys| and values from |o|. Keys not
        in |o| will be omitted.
    """
    d = {}
    iterable = hasattr(o, '__getitem__')
    for k in keys:
        if hasattr(o, k):
            d[k] = getattr(o, k)
        elif iterable and k in o:
            d[k] = o[k]
    return d


async def gather_all(*aws):
    """Runs |aws| concurrently and waits for every one of them to settle.

    A failure does not cancel the others. All of them complete first, then the
    first exception in argument order is raised.

    Returns:
        The list of results, in argument order.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results
