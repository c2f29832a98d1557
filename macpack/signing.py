# Copyright 2026 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.
"""
The signing module computes the code signing parameters for an app bundle and
runs the signer, and for Mac App Store builds the flattener, with them.
"""

import asyncio
import os.path
import re

from macpack import commands, config, identity, invoker, logger, model

_UNSIGNED_MESSAGE = (
    'App is not signed: CSC_LINK or CSC_NAME are not specified, and no valid '
    'identity in the keychain')

# Sign options that are always computed. Overriding them, or entitlements
# resolved from the build options or resources, is logged.
_COMPUTED_SIGN_OPTIONS = ('app', 'platform', 'keychain')
_ENTITLEMENT_OPTIONS = ('entitlements', 'entitlements_inherit')


class Invoker(invoker.Interface.Signer):

    @staticmethod
    def register_arguments(parser):
        parser.add_argument(
            '--sign-arg',
            action='append',
            default=[],
            help='Specifies additional arguments to pass to codesign. If '
            'specified multiple times, the arguments are passed in the given '
            'order to every invocation of codesign.')

    def __init__(self, args, config):
        self._sign_args = args.sign_arg

    @property
    def sign_args(self):
        return self._sign_args

    def _codesign_command(self, options):
        command = ['codesign', '--sign', options.identity, '--force']
        if options.keychain:
            command.extend(['--keychain', options.keychain])
        if options.extra.get('hardened_runtime'):
            command.extend(['--options', 'runtime'])
        timestamp = options.extra.get('timestamp')
        if isinstance(timestamp, str):
            command.append('--timestamp={}'.format(timestamp))
        elif timestamp:
            command.append('--timestamp')
        return command + self.sign_args

    async def sign(self, config, options):
        # Nested code is signed before the bundle that contains it.
        frameworks_dir = os.path.join(options.app, 'Contents', 'Frameworks')
        for entry in commands.list_dir(frameworks_dir):
            command = self._codesign_command(options)
            if options.entitlements_inherit:
                command.extend(['--entitlements', options.entitlements_inherit])
            command.append(os.path.join(frameworks_dir, entry))
            await commands.run_command_async(command)

        command = self._codesign_command(options)
        if options.entitlements:
            command.extend(['--entitlements', options.entitlements])
        command.append(options.app)
        await commands.run_command_async(command)

    async def flat(self, config, options):
        command = [
            'productbuild', '--component', options.app, '/Applications',
            '--sign', options.identity
        ]
        if options.keychain:
            command.extend(['--keychain', options.keychain])
        command.append(options.pkg)
        await commands.run_command_async(command)


def _normalize_option_name(name):
    """Converts a `kebab-case` or `camelCase` option name to `snake_case`."""
    name = re.sub(r'(?<=[a-z0-9])([A-Z])', r'_\1', name)
    return name.replace('-', '_').lower()


async def _no_code_signing_info():
    return None


class AppSigner(object):
    """Signs the app bundles of one packaging run.

    The |model.CodeSigningInfo| is resolved once, the first time a bundle is
    signed, and shared by the direct distribution and the Mac App Store
    builds.
    """

    def __init__(self, context, keychain=None):
        """
        Args:
            context: The |packager.PackContext| of the run.
            keychain: The |keychain.Keychain| holding the configured
                certificates, or None if no certificate is configured.
        """
        self._context = context
        self._config = context.config
        self._keychain = keychain
        self._code_signing_info = None

    def code_signing_info(self):
        """Returns a future for the run's |model.CodeSigningInfo|, or for None
        if no certificate is configured. The keychain is created by the first
        call.
        """
        if self._code_signing_info is None:
            if self._keychain is None:
                coro = _no_code_signing_info()
            else:
                coro = self._keychain.create()
            self._code_signing_info = asyncio.ensure_future(coro)
        return self._code_signing_info

    async def sign(self, app_out_dir, mas_options=None):
        """Signs the app bundle in |app_out_dir|.

        A direct distribution build without any identity is left unsigned with
        a warning. For a Mac App Store build, the signed bundle is then
        flattened into an installer package, which is reported as an artifact.

        Args:
            app_out_dir: The directory containing the app bundle.
            mas_options: The merged Mac App Store build options, or None for a
                direct distribution build.

        Raises:
            config.ConfigError if the identities required by the build are
                missing.
        """
        is_mas = mas_options is not None
        info = await self.code_signing_info()
        if info is None:
            info = await self._discover_code_signing_info(is_mas)
            if info is None:
                return
        else:
            info = await self._check_code_signing_info(info, is_mas)

        logger.info('Signing app (identity: %s)', info.name)
        options = self.compute_sign_options(app_out_dir, info, mas_options)
        await self._config.invoker.signer.sign(self._config, options)

        if is_mas:
            pkg = os.path.join(
                app_out_dir, '{}.pkg'.format(self._config.packaging_basename))
            await self._config.invoker.signer.flat(
                self._config,
                model.FlatOptions(
                    app=options.app,
                    pkg=pkg,
                    identity=info.installer_name,
                    platform=options.platform,
                    keychain=options.keychain))
            self._context.dispatch_artifact_created(
                pkg, '{}.pkg'.format(self._config.artifact_basename))

    async def _discover_code_signing_info(self, is_mas):
        if self._config.environment.csc_link is not None:
            raise config.ConfigError(
                'Code signing information is missing, but CSC_LINK is set')

        if is_mas:
            cert_type = model.CertificateType.MAC_APP_STORE_APPLICATION
        else:
            cert_type = model.CertificateType.DEVELOPER_ID_APPLICATION
        name = await identity.find_identity(self._config, cert_type,
                                            self._config.identity)
        if name is None:
            if not is_mas:
                logger.warning(_UNSIGNED_MESSAGE)
                return None
            raise config.ConfigError(_UNSIGNED_MESSAGE)

        if not is_mas:
            return model.CodeSigningInfo(name)

        installer_name = await identity.find_identity(
            self._config, model.CertificateType.MAC_APP_STORE_INSTALLER,
            self._config.identity)
        if installer_name is None:
            raise config.ConfigError(
                'Cannot find valid installer certificate: CSC_LINK or CSC_NAME '
                'are not specified, and no valid identity in the keychain')
        return model.CodeSigningInfo(name, installer_name)

    async def _check_code_signing_info(self, info, is_mas):
        if info.name is None:
            if not is_mas:
                raise config.ConfigError(
                    'The certificate in CSC_LINK provides no Developer ID '
                    'Application or 3rd Party Mac Developer Application '
                    'identity')
            name = await identity.find_identity(
                self._config, model.CertificateType.MAC_APP_STORE_APPLICATION,
                self._config.identity, info.keychain)
            if name is None:
                raise config.ConfigError(
                    'Signing is required for mas builds but no 3rd Party Mac '
                    'Developer Application identity is in keychain {}'.format(
                        info.keychain))
            info = info._replace(name=name)
        if is_mas and info.installer_name is None:
            raise config.ConfigError(
                'Signing is required for mas builds but CSC_INSTALLER_LINK is '
                'not specified')
        return info

    def compute_sign_options(self, app_out_dir, info, mas_options=None):
        """Computes the signer options for the app bundle in |app_out_dir|.

        The identity from |info|, the bundle path, the platform, the keychain
        and the entitlements are computed, then the `osx-sign` overrides are
        applied over them. Overriding a value that is always computed is
        allowed, but logged as a warning.

        Args:
            app_out_dir: The directory containing the app bundle.
            info: The |model.CodeSigningInfo|.
            mas_options: The merged Mac App Store build options, or None for a
                direct distribution build.

        Returns:
            A |model.SignOptions|.
        """
        is_mas = mas_options is not None
        options = {
            'identity': info.name,
            'app': os.path.join(app_out_dir, self._config.app_dir),
            'platform': model.MAS if is_mas else model.PLATFORM_DARWIN,
            'keychain': info.keychain,
        }

        build_options = mas_options if is_mas else self._config.osx_options
        resource_prefix = model.MAS if is_mas else 'osx'
        for option, key, resource in (
            ('entitlements', 'entitlements', '.entitlements'),
            ('entitlements_inherit', 'entitlementsInherit',
             '.inherit.entitlements'),
        ):
            if build_options.get(key) is not None:
                options[option] = build_options[key]
            elif self._context.has_resource(resource_prefix + resource):
                options[option] = self._context.resource_path(resource_prefix +
                                                              resource)

        for name, value in self._config.sign_overrides.items():
            name = _normalize_option_name(name)
            resolved = options.get(name)
            overrides_resolved = (name in _COMPUTED_SIGN_OPTIONS or
                                  (name in _ENTITLEMENT_OPTIONS and
                                   resolved is not None))
            if overrides_resolved and value != resolved:
                logger.warning(
                    'The osx-sign option "%s" overrides the computed value %r '
                    'with %r', name, resolved, value)
            options[name] = value
        return model.SignOptions(**options)
