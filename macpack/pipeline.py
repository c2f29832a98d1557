# Copyright 2026 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.
"""
The pipeline module orchestrates a packaging run, which includes:
    1. Placing the app bundle in the output directory of each build variant.
    2. Code signing the direct distribution and the Mac App Store bundles, and
       flattening the latter into a signed installer package.
    3. Producing the disk image and archives of the direct distribution build.
    4. Deleting the ephemeral keychain, whether or not the run succeeded.
"""

import asyncio
import functools
import os.path

from macpack import artifacts, keychain, logger, model, packager, signing


class MacPackager(packager.PlatformPackager):
    """Packages the app for macOS, outside and inside the Mac App Store."""

    def __init__(self, context):
        """Creates the packager.

        Raises:
            config.ConfigError if the configured signing credentials are
                incomplete. No external process has been started then.
        """
        super(MacPackager, self).__init__(context)
        manager = keychain.KeychainManager(context.config,
                                           context.cleanup_tasks)
        self._keychain = manager.create_store(context.config.credentials)
        self._signer = signing.AppSigner(context, self._keychain)

    @property
    def platform(self):
        return model.PLATFORM_DARWIN

    @property
    def signer(self):
        return self._signer

    @staticmethod
    def app_out_dir(out_dir, arch):
        """Returns the output directory of the direct distribution build."""
        if arch == 'x64':
            return os.path.join(out_dir, 'osx')
        return os.path.join(out_dir, 'osx-{}'.format(arch))

    @staticmethod
    def mas_out_dir(out_dir, arch):
        """Returns the output directory of the Mac App Store build."""
        if arch == 'x64':
            return os.path.join(out_dir, model.MAS)
        return os.path.join(out_dir, '{}-{}'.format(model.MAS, arch))

    async def pack(self, out_dir, arch):
        """Builds and signs the requested variants of the app for |arch|.

        The direct distribution build runs concurrently with the Mac App Store
        build. Its disk image and archives are not created here: the step that
        creates them is returned, so that the caller can run it once every
        bundle is signed.

        Args:
            out_dir: The output directory of the run.
            arch: The architecture name, such as 'x64' or 'arm64'.

        Returns:
            A coroutine function that creates the distributable artifacts and
            returns their |model.ArtifactRecord|s, or None if only `mas` is
            requested.
        """
        targets = self.config.targets
        non_mas = None
        if any(target != model.MAS for target in targets):
            non_mas = asyncio.ensure_future(self._pack_non_mas(out_dir, arch))

        if model.MAS in targets:
            try:
                await self._pack_mas(out_dir, arch)
            except Exception:
                if non_mas is not None:
                    await asyncio.gather(non_mas, return_exceptions=True)
                raise

        if non_mas is not None:
            return await non_mas
        return None

    async def _pack_non_mas(self, out_dir, arch):
        app_out_dir = self.app_out_dir(out_dir, arch)
        await self.do_pack(app_out_dir, arch, self.config.osx_options)
        await self.sign(app_out_dir, None)
        return functools.partial(self.package_in_distributable_format,
                                 out_dir, app_out_dir, arch)

    async def _pack_mas(self, out_dir, arch):
        app_out_dir = self.mas_out_dir(out_dir, arch)
        mas_options = model.deep_merge(self.config.osx_options,
                                       self.config.mas_options)
        # The builder must not sign the bundle, it is signed below.
        await self.do_pack(
            app_out_dir,
            arch,
            mas_options,
            platform=model.MAS,
            internal_signing=False)
        await self.sign(app_out_dir, mas_options)

    async def sign(self, app_out_dir, mas_options=None):
        await self._signer.sign(app_out_dir, mas_options)

    async def package_in_distributable_format(self, out_dir, app_out_dir,
                                              arch):
        return await artifacts.package_in_distributable_format(
            self.context, out_dir, app_out_dir, arch)


async def build(config, out_dir, archs=('x64',), on_artifact_created=None):
    """Runs a packaging run: packs the app for each of |archs|, then creates
    the distributable artifacts of every architecture concurrently.

    The cleanup tasks registered during the run, such as deleting the
    ephemeral keychain, always run before this returns or raises.

    Args:
        config: The |config.PackConfig|.
        out_dir: The output directory.
        archs: The architecture names to pack.
        on_artifact_created: A 1-arg callable that receives each
            |model.ArtifactRecord| as it is produced, or None.

    Returns:
        The list of |model.ArtifactRecord|s, in the order they were produced.
    """
    cleanup_tasks = model.CleanupTasks()
    context = packager.PackContext(config, cleanup_tasks, on_artifact_created)
    try:
        mac_packager = MacPackager(context)
        deferred = []
        for arch in archs:
            step = await mac_packager.pack(out_dir, arch)
            if step is not None:
                deferred.append(step)
        await model.gather_all(*(step() for step in deferred))
    finally:
        if len(cleanup_tasks):
            logger.info('Running %d cleanup task(s)', len(cleanup_tasks))
        await cleanup_tasks.run_all()
    return context.artifacts
