# Copyright 2026 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

import asyncio
import unittest

from macpack import model


class TestCertificateType(unittest.TestCase):

    def test_prefix(self):
        self.assertEqual(model.CertificateType.DEVELOPER_ID_APPLICATION.prefix,
                         'Developer ID Application:')
        self.assertEqual(model.CertificateType.MAC_APP_STORE_INSTALLER.prefix,
                         '3rd Party Mac Developer Installer:')
        self.assertEqual(
            str(model.CertificateType.MAC_APP_STORE_APPLICATION),
            '3rd Party Mac Developer Application')


class TestSignOptions(unittest.TestCase):

    def test_equality(self):
        a = model.SignOptions(
            '/$O/osx/App.app', 'darwin', identity='I', hardened_runtime=True)
        b = model.SignOptions(
            app='/$O/osx/App.app',
            platform='darwin',
            identity='I',
            hardened_runtime=True)
        self.assertEqual(a, b)
        self.assertEqual(a.extra, {'hardened_runtime': True})
        self.assertNotEqual(a, model.SignOptions('/$O/osx/App.app', 'mas'))
        self.assertIn('hardened_runtime', repr(a))

    def test_defaults(self):
        options = model.SignOptions('/$O/mas/App.app', 'mas')
        self.assertIsNone(options.identity)
        self.assertIsNone(options.keychain)
        self.assertIsNone(options.entitlements)
        self.assertIsNone(options.entitlements_inherit)


class TestCodeSigningInfo(unittest.TestCase):

    def test_defaults(self):
        info = model.CodeSigningInfo('Developer ID Application: J (T)')
        self.assertIsNone(info.installer_name)
        self.assertIsNone(info.keychain)


class TestCleanupTasks(unittest.TestCase):

    def test_runs_in_order_once(self):
        calls = []
        tasks = model.CleanupTasks()
        tasks.add(lambda: calls.append(1))

        async def task():
            calls.append(2)

        tasks.add(task)
        self.assertEqual(len(tasks), 2)

        asyncio.run(tasks.run_all())
        self.assertEqual(calls, [1, 2])

        asyncio.run(tasks.run_all())
        self.assertEqual(calls, [1, 2])

    def test_failure_does_not_stop_others(self):
        calls = []
        tasks = model.CleanupTasks()

        def failing():
            raise RuntimeError('boom')

        async def failing_async():
            raise RuntimeError('boom')

        tasks.add(failing)
        tasks.add(failing_async)
        tasks.add(lambda: calls.append('ran'))

        with self.assertLogs('macpack', level='WARNING') as logs:
            asyncio.run(tasks.run_all())
        self.assertEqual(calls, ['ran'])
        self.assertEqual(len(logs.records), 2)

    def test_empty(self):
        tasks = model.CleanupTasks()
        self.assertEqual(len(tasks), 0)
        asyncio.run(tasks.run_all())


class TestDeepMerge(unittest.TestCase):

    def test_merge(self):
        osx = {
            'identity': 'J',
            'window': {
                'size': {
                    'width': 540
                }
            },
            'contents': [{
                'x': 1
            }]
        }
        mas = {
            'entitlements': 'mas.plist',
            'window': {
                'size': {
                    'height': 380
                }
            },
            'contents': [{
                'x': 2
            }]
        }
        merged = model.deep_merge(osx, None, mas)
        self.assertEqual(
            merged, {
                'identity': 'J',
                'entitlements': 'mas.plist',
                'window': {
                    'size': {
                        'width': 540,
                        'height': 380
                    }
                },
                'contents': [{
                    'x': 2
                }]
            })

        # The inputs are not modified or shared.
        merged['window']['size']['width'] = 1
        merged['contents'][0]['x'] = 3
        self.assertEqual(osx['window']['size'], {'width': 540})
        self.assertEqual(mas['contents'], [{'x': 2}])

    def test_later_wins(self):
        self.assertEqual(
            model.deep_merge({'a': {'b': 1}}, {'a': 2}), {'a': 2})
        self.assertEqual(
            model.deep_merge({'a': 2}, {'a': {'b': 1}}), {'a': {'b': 1}})

    def test_empty(self):
        self.assertEqual(model.deep_merge(), {})
        self.assertEqual(model.deep_merge(None), {})


class TestGatherAll(unittest.TestCase):

    def test_results(self):

        async def value(v):
            await asyncio.sleep(0)
            return v

        self.assertEqual(
            asyncio.run(model.gather_all(value(1), value(2))), [1, 2])

    def test_waits_for_all_then_raises_first(self):
        settled = []

        async def fail(message):
            await asyncio.sleep(0)
            raise ValueError(message)

        async def succeed():
            for _ in range(3):
                await asyncio.sleep(0)
            settled.append(True)

        with self.assertRaisesRegex(ValueError, 'first'):
            asyncio.run(
                model.gather_all(fail('first'), succeed(), fail('second')))
        self.assertEqual(settled, [True])


class TestPick(unittest.TestCase):

    def test_pick(self):
        d = {'a': 1, 'b': 2, 'c': 3}
        actual = model.pick(d, ['c', 'q'])
        expected = {'c': 3}
        self.assertEqual(actual, expected)
