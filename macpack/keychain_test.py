# Copyright 2026 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

import asyncio
import os
import re
import shutil
import subprocess
import tempfile
import unittest
from unittest import mock

from macpack import config, keychain, model, test_config

_KEYCHAIN_IDENTITIES = b'''
  1) 3333333333333333333333333333333333333333 "3rd Party Mac Developer Application: Jane Doe (TEAMID)"
  2) 4444444444444444444444444444444444444444 "3rd Party Mac Developer Installer: Jane Doe (TEAMID)"
     2 valid identities found
'''


class TestGenerateKeychainName(unittest.TestCase):

    def test_name(self):
        name = keychain.generate_keychain_name()
        self.assertRegex(name, r'^csc-[0-9a-f]{32}\.keychain$')
        self.assertNotEqual(name, keychain.generate_keychain_name())


@mock.patch('macpack.commands.run_command_async')
class TestKeychainInvoker(unittest.TestCase):

    def setUp(self):
        self.config = test_config.TestConfig()

    def test_create_keychain(self, run_command_async):
        asyncio.run(
            self.config.invoker.keychain.create_keychain(
                'csc-test.keychain', 'pw'))
        run_command_async.assert_has_awaits([
            mock.call(
                ['security', 'create-keychain', '-p', 'pw', 'csc-test.keychain'],
                secrets=('pw',)),
            mock.call(
                ['security', 'unlock-keychain', '-p', 'pw', 'csc-test.keychain'],
                secrets=('pw',)),
            mock.call([
                'security', 'set-keychain-settings', '-t', '3600', '-u',
                'csc-test.keychain'
            ],
                      secrets=('pw',)),
        ])

    def test_import_certificate(self, run_command_async):
        asyncio.run(
            self.config.invoker.keychain.import_certificate(
                'csc-test.keychain', '/$W/0.p12', 'hunter2'))
        run_command_async.assert_awaited_once_with([
            'security', 'import', '/$W/0.p12', '-k', 'csc-test.keychain', '-T',
            '/usr/bin/codesign', '-T', '/usr/bin/productbuild', '-P', 'hunter2'
        ],
                                                   secrets=('hunter2',))


@mock.patch('macpack.commands.run_command_output_async')
class TestDeleteKeychain(unittest.TestCase):

    def setUp(self):
        self.config = test_config.TestConfig()

    def test_delete(self, run_command_output_async):
        asyncio.run(
            self.config.invoker.keychain.delete_keychain('csc-test.keychain'))
        run_command_output_async.assert_awaited_once_with(
            ['security', 'delete-keychain', 'csc-test.keychain'])

    def test_delete_missing(self, run_command_output_async):
        run_command_output_async.side_effect = subprocess.CalledProcessError(
            50, ['security'],
            stderr=b'security: SecKeychainDelete: The specified keychain '
            b'could not be found.')
        asyncio.run(
            self.config.invoker.keychain.delete_keychain('csc-test.keychain'))

    def test_delete_failure(self, run_command_output_async):
        run_command_output_async.side_effect = subprocess.CalledProcessError(
            1, ['security'], stderr=b'security: permission denied')
        self.assertRaises(
            subprocess.CalledProcessError, lambda: asyncio.run(
                self.config.invoker.keychain.delete_keychain(
                    'csc-test.keychain')))


class TestKeychainManager(unittest.TestCase):

    def setUp(self):
        self.config = test_config.TestConfig()
        self.cleanup_tasks = model.CleanupTasks()
        self.manager = keychain.KeychainManager(self.config,
                                                self.cleanup_tasks)

    def test_no_link(self):
        self.assertIsNone(
            self.manager.create_store(config.SigningCredentials()))
        self.assertEqual(len(self.cleanup_tasks), 0)

    @mock.patch('macpack.commands.run_command_async')
    def test_missing_password(self, run_command_async):
        with self.assertRaisesRegex(config.ConfigError,
                                    'cscLink is set, but cscKeyPassword not'):
            self.manager.create_store(
                config.SigningCredentials(link='/certs/app.p12'))
        self.assertEqual(len(self.cleanup_tasks), 0)
        run_command_async.assert_not_called()

    @mock.patch('macpack.commands.run_command_output_async')
    def test_cleanup_registered_before_create(self, run_command_output_async):
        store = self.manager.create_store(
            config.SigningCredentials(link='/certs/app.p12', key_password='pw'))
        self.assertTrue(re.match(r'^csc-[0-9a-f]{32}\.keychain$', store.name))
        self.assertEqual(len(self.cleanup_tasks), 1)

        asyncio.run(self.cleanup_tasks.run_all())
        run_command_output_async.assert_awaited_once_with(
            ['security', 'delete-keychain', store.name])


@mock.patch('macpack.commands.run_command_output_async')
@mock.patch('macpack.commands.run_command_async')
class TestKeychainCreate(unittest.TestCase):

    def setUp(self):
        self.tempdir = tempfile.mkdtemp()
        self.config = test_config.TestConfig()

    def tearDown(self):
        shutil.rmtree(self.tempdir)

    def _create(self, credentials):
        manager = keychain.KeychainManager(self.config, model.CleanupTasks())
        store = manager.create_store(credentials)
        return store, asyncio.run(store.create())

    def test_create_from_files(self, run_command_async,
                               run_command_output_async):
        run_command_output_async.return_value = _KEYCHAIN_IDENTITIES
        app_cert = os.path.join(self.tempdir, 'app.p12')
        installer_cert = os.path.join(self.tempdir, 'installer.p12')
        for path in (app_cert, installer_cert):
            open(path, 'wb').close()

        store, info = self._create(
            config.SigningCredentials(app_cert, 'pw', installer_cert, 'ipw'))

        self.assertEqual(
            info,
            model.CodeSigningInfo(
                '3rd Party Mac Developer Application: Jane Doe (TEAMID)',
                '3rd Party Mac Developer Installer: Jane Doe (TEAMID)',
                store.name))
        run_command_async.assert_has_awaits([
            mock.call([
                'security', 'import', app_cert, '-k', store.name, '-T',
                '/usr/bin/codesign', '-T', '/usr/bin/productbuild', '-P', 'pw'
            ],
                      secrets=('pw',)),
            mock.call([
                'security', 'import', installer_cert, '-k', store.name, '-T',
                '/usr/bin/codesign', '-T', '/usr/bin/productbuild', '-P', 'ipw'
            ],
                      secrets=('ipw',)),
        ])
        self.assertEqual(run_command_async.await_count, 5)
        run_command_output_async.assert_has_awaits([
            mock.call([
                'security', 'find-identity', '-v', '-p', 'codesigning',
                store.name
            ])
        ])

    def test_create_from_base64(self, run_command_async,
                                run_command_output_async):
        run_command_output_async.return_value = b''
        imported = []

        async def record_import(args, **kwargs):
            if args[:2] == ['security', 'import']:
                with open(args[2], 'rb') as f:
                    imported.append(f.read())

        run_command_async.side_effect = record_import

        store, info = self._create(
            config.SigningCredentials('aGVsbG8=', 'pw'))

        self.assertEqual(imported, [b'hello'])
        self.assertEqual(info, model.CodeSigningInfo(None, None, store.name))

    def test_create_from_url(self, run_command_async,
                             run_command_output_async):
        run_command_output_async.return_value = b''

        def download(url, path):
            with open(path, 'wb') as f:
                f.write(b'downloaded')

        with mock.patch('macpack.commands.download',
                        side_effect=download) as download_mock:
            self._create(
                config.SigningCredentials('https://example.com/app.p12', 'pw'))
        download_mock.assert_called_once_with('https://example.com/app.p12',
                                              mock.ANY)

    def test_create_from_invalid_link(self, run_command_async,
                                      run_command_output_async):
        with self.assertRaises(config.ConfigError):
            self._create(config.SigningCredentials('abc', 'pw'))

    @mock.patch('macpack.commands.file_exists', return_value=False)
    def test_create_from_missing_path(self, file_exists, run_command_async,
                                      run_command_output_async):
        with self.assertRaisesRegex(config.ConfigError,
                                    'Certificate link is not a URL'):
            self._create(
                config.SigningCredentials('/Users/alice/cert.p12', 'pw'))
        file_exists.assert_called_once_with('/Users/alice/cert.p12')
        run_command_async.assert_not_called()
        run_command_output_async.assert_not_called()

    def test_create_from_invalid_installer_link(self, run_command_async,
                                                run_command_output_async):
        with self.assertRaises(config.ConfigError):
            self._create(
                config.SigningCredentials('aGVsbG8=', 'pw', 'not base64!',
                                          'ipw'))
        run_command_async.assert_not_called()
