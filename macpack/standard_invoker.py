# Copyright 2026 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from macpack import artifacts, invoker, keychain, packager, signing


class Invoker(invoker.Interface):

    def __init__(self, *args):
        self._builder = packager.Invoker(*args)
        self._keychain = keychain.Invoker(*args)
        self._signer = signing.Invoker(*args)
        self._packager = artifacts.Invoker(*args)

    @property
    def builder(self):
        return self._builder

    @property
    def keychain(self):
        return self._keychain

    @property
    def signer(self):
        return self._signer

    @property
    def packager(self):
        return self._packager

    @staticmethod
    def register_arguments(parser):
        packager.Invoker.register_arguments(parser)
        keychain.Invoker.register_arguments(parser)
        signing.Invoker.register_arguments(parser)
        artifacts.Invoker.register_arguments(parser)
