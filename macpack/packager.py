# Copyright 2026 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.
"""
The packager module defines the interface shared by platform packagers and the
per-run context they are given.
"""

import os.path

from macpack import commands, invoker, logger, model


class PackContext(object):
    """The values shared by the steps of one packaging run."""

    def __init__(self, config, cleanup_tasks, on_artifact_created=None):
        """
        Args:
            config: The |config.PackConfig|.
            cleanup_tasks: The |model.CleanupTasks| of the run.
            on_artifact_created: A 1-arg callable that receives each
                |model.ArtifactRecord|, or None.
        """
        self._config = config
        self._cleanup_tasks = cleanup_tasks
        self._on_artifact_created = on_artifact_created
        self._resource_list = None
        self._artifacts = []

    @property
    def config(self):
        return self._config

    @property
    def cleanup_tasks(self):
        return self._cleanup_tasks

    @property
    def artifacts(self):
        """Returns the |model.ArtifactRecord|s dispatched so far, in dispatch
        order.
        """
        return list(self._artifacts)

    def resource_list(self):
        """Returns the names of the files in the build resources directory.
        The directory is listed once per run.
        """
        if self._resource_list is None:
            self._resource_list = commands.list_dir(
                self._config.build_resources_dir)
        return self._resource_list

    def has_resource(self, name):
        return name in self.resource_list()

    def resource_path(self, name):
        return os.path.join(self._config.build_resources_dir, name)

    def dispatch_artifact_created(self, path, suggested_name):
        """Reports a produced file.

        Returns:
            The |model.ArtifactRecord|.
        """
        record = model.ArtifactRecord(os.path.abspath(path), suggested_name)
        logger.info('Created %s', record.path)
        self._artifacts.append(record)
        if self._on_artifact_created is not None:
            self._on_artifact_created(record)
        return record


class PlatformPackager(object):
    """The interface implemented by the packager for each platform."""

    def __init__(self, context):
        self._context = context

    @property
    def context(self):
        return self._context

    @property
    def config(self):
        return self._context.config

    @property
    def platform(self):
        raise NotImplementedError('platform')

    async def pack(self, out_dir, arch):
        """Builds and signs the app for |arch| in |out_dir|.

        Returns:
            A coroutine function that creates the distributable artifacts, to
            be awaited after every platform has been packed, or None.
        """
        raise NotImplementedError('pack')

    async def sign(self, app_out_dir, mas_options=None):
        raise NotImplementedError('sign')

    async def package_in_distributable_format(self, out_dir, app_out_dir,
                                              arch):
        raise NotImplementedError('package_in_distributable_format')

    async def do_pack(self,
                      app_out_dir,
                      arch,
                      build_options,
                      platform=None,
                      internal_signing=True):
        """Produces the unsigned app bundle in |app_out_dir|."""
        commands.make_dir(app_out_dir)
        await self.config.invoker.builder.build_app(
            self.config, app_out_dir, arch, platform or self.platform,
            build_options, internal_signing)


class Invoker(invoker.Interface.Builder):
    """Places a prebuilt app bundle in the output directory."""

    async def build_app(self, config, app_out_dir, arch, platform,
                        build_options, internal_signing):
        source = os.path.join(config.app_source_dir, config.app_dir)
        if not commands.file_exists(source):
            raise invoker.InvokerConfigError(
                'The app bundle {} does not exist'.format(source))
        destination = os.path.join(app_out_dir, config.app_dir)
        await commands.run_command_async(
            ['ditto', '--noqtn', source, destination])
