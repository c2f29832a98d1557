# Copyright 2026 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.
"""
The keychain module creates and destroys the ephemeral keychain that holds the
signing certificates for the duration of a packaging run.
"""

import asyncio
import os.path
import secrets
import subprocess

from macpack import commands, config, identity, invoker, logger, model

# How long, in seconds, the keychain stays unlocked without being used.
_KEYCHAIN_LOCK_TIMEOUT = 3600


def generate_keychain_name():
    return 'csc-{}.keychain'.format(secrets.token_hex(16))


class Invoker(invoker.Interface.Keychain):
    """Keychain operations backed by security(1)."""

    async def create_keychain(self, name, password):
        for command in (
            ['security', 'create-keychain', '-p', password, name],
            ['security', 'unlock-keychain', '-p', password, name],
            [
                'security', 'set-keychain-settings', '-t',
                str(_KEYCHAIN_LOCK_TIMEOUT), '-u', name
            ],
        ):
            await commands.run_command_async(command, secrets=(password,))

    async def import_certificate(self, name, path, password):
        await commands.run_command_async([
            'security', 'import', path, '-k', name, '-T', '/usr/bin/codesign',
            '-T', '/usr/bin/productbuild', '-P', password
        ],
                                         secrets=(password,))

    async def delete_keychain(self, name):
        try:
            await commands.run_command_output_async(
                ['security', 'delete-keychain', name])
        except subprocess.CalledProcessError as e:
            if e.stderr and b'could not be found' in e.stderr:
                logger.debug('Keychain %s does not exist', name)
                return
            raise

    async def find_identities(self, keychain=None):
        command = ['security', 'find-identity', '-v', '-p', 'codesigning']
        if keychain:
            command.append(keychain)
        output = await commands.run_command_output_async(command)
        return identity.parse_identities(output.decode('utf-8'))


class KeychainManager(object):
    """Creates ephemeral keychains and registers their deletion with the
    run's |model.CleanupTasks|.
    """

    def __init__(self, config, cleanup_tasks):
        self._config = config
        self._cleanup_tasks = cleanup_tasks

    def create_store(self, credentials):
        """Prepares an ephemeral keychain for |credentials|.

        This is synchronous: the credentials are validated and the deletion of
        the keychain is registered before any keychain operation starts, so a
        failure while creating it still results in an attempt to delete it.

        Args:
            credentials: The |config.SigningCredentials|.

        Returns:
            A |Keychain| whose create() does the work, or None if no
            certificate is configured.

        Raises:
            config.ConfigError if a certificate is given without its password.
        """
        if credentials.link is None:
            return None
        credentials.validate()

        name = generate_keychain_name()
        self._cleanup_tasks.add(lambda: self.delete_store(name))
        return Keychain(self._config, name, credentials)

    async def delete_store(self, name):
        logger.info('Deleting keychain %s', name)
        await self._config.invoker.keychain.delete_keychain(name)


class Keychain(object):
    """A handle to an ephemeral keychain, which exists once create() has
    completed.
    """

    def __init__(self, config, name, credentials):
        self._config = config
        self._name = name
        self._credentials = credentials

    @property
    def name(self):
        return self._name

    async def create(self):
        """Creates the keychain, imports the certificates and resolves the
        identities they provide.

        Returns:
            A |model.CodeSigningInfo|.
        """
        keychain_invoker = self._config.invoker.keychain
        certificates = [(self._credentials.link,
                         self._credentials.key_password)]
        if self._credentials.installer_link is not None:
            certificates.append((self._credentials.installer_link,
                                 self._credentials.installer_key_password))

        with commands.WorkDirectory('csc_') as work_dir:
            # Local and base64 links are resolved before any keychain
            # operation starts.
            paths = []
            downloads = []
            for i, (link, _) in enumerate(certificates):
                path = os.path.join(work_dir, '{}.p12'.format(i))
                if _is_url(link):
                    downloads.append(_download_certificate(link, path))
                else:
                    path = _local_certificate(link, path)
                paths.append(path)

            keychain_password = secrets.token_hex(8)
            await model.gather_all(
                *downloads,
                keychain_invoker.create_keychain(self._name,
                                                 keychain_password))
            for path, (_, password) in zip(paths, certificates):
                await keychain_invoker.import_certificate(
                    self._name, path, password)

        name = await identity.scan(
            self._config, model.CertificateType.DEVELOPER_ID_APPLICATION,
            self._name)
        if name is None:
            name = await identity.scan(
                self._config,
                model.CertificateType.MAC_APP_STORE_APPLICATION, self._name)
        installer_name = await identity.scan(
            self._config, model.CertificateType.MAC_APP_STORE_INSTALLER,
            self._name)
        return model.CodeSigningInfo(name, installer_name, self._name)


def _is_url(link):
    return link.startswith('https://') or link.startswith('http://')


async def _download_certificate(url, path):
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, commands.download, url, path)


def _local_certificate(link, path):
    """Makes the certificate referenced by |link| available as a file.

    Args:
        link: A path to an existing file, or base64 data.
        path: Where to write the certificate if |link| is base64 data.

    Returns:
        The path to the certificate file.

    Raises:
        config.ConfigError if |link| is neither.
    """
    local_path = os.path.expanduser(link)
    if commands.file_exists(local_path):
        return local_path
    try:
        commands.write_base64(path, link)
    except ValueError as e:
        raise config.ConfigError(
            'Certificate link is not a URL, an existing file or base64 '
            'data') from e
    return path
