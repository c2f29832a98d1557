# Copyright 2026 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.
"""
The artifacts module produces the distributable files, disk images and
archives, from a signed app bundle.
"""

import json
import os.path

from macpack import commands, invoker, logger, model

# The options of the `osx` build options that describe the disk image.
_DMG_OPTION_KEYS = ('title', 'icon', 'background', 'background-color',
                    'icon-size', 'window', 'format', 'contents')

_7Z_LEVELS = {'store': '0', 'normal': '5', 'maximum': '9'}
_ZIP_LEVELS = {'store': '0', 'maximum': '9'}
_TAR_FLAGS = {'tar.gz': 'z', 'tar.bz2': 'j', 'tar.xz': 'J'}


class Invoker(invoker.Interface.Packager):

    @staticmethod
    def register_arguments(parser):
        parser.add_argument(
            '--appdmg',
            default='appdmg',
            help='The appdmg executable used to create disk images.')

    def __init__(self, args, config):
        self._appdmg = args.appdmg

    async def create_dmg(self, config, target, specification):
        commands.delete_file_if_exists(target)
        with commands.WorkDirectory('appdmg_') as work_dir:
            specification_path = os.path.join(work_dir, 'appdmg.json')
            commands.write_json(specification_path, specification)
            await commands.run_command_async(
                [self._appdmg, specification_path, target])

    async def archive(self, config, format, app_out_dir, out_file):
        out_file = os.path.abspath(out_file)
        commands.delete_file_if_exists(out_file)
        if format == 'zip':
            command = ['ditto', '-c', '-k', '--sequesterRsrc', '--keepParent']
            level = _ZIP_LEVELS.get(config.compression)
            if level is not None:
                command.extend(['--zlibCompressionLevel', level])
            command.extend([config.app_dir, out_file])
        elif format == '7z':
            command = [
                '7za', 'a', '-mx={}'.format(_7Z_LEVELS[config.compression]),
                out_file, config.app_dir
            ]
        else:
            command = [
                'tar', '-c{}f'.format(_TAR_FLAGS[format]), out_file,
                config.app_dir
            ]
        await commands.run_command_async(command, cwd=app_out_dir)


def compute_dmg_specification(context, app_out_dir):
    """Computes the disk image layout for the app bundle in |app_out_dir|.

    The disk image options of the `osx` build options are merged over the
    defaults. An icon and a background that are not configured are taken from
    `icon.icns` and `background.png` in the build resources, if present.

    Args:
        context: The |packager.PackContext|.
        app_out_dir: The directory containing the signed app bundle.

    Returns:
        The specification dict, in the format read by appdmg.
    """
    config = context.config
    custom = {
        key: value
        for key, value in config.osx_options.items()
        if key in _DMG_OPTION_KEYS
    }
    specification = model.deep_merge(
        {
            'title': config.product_name,
            'icon-size': 80,
            'contents': [
                {
                    'x': 410,
                    'y': 220,
                    'type': 'link',
                    'path': '/Applications'
                },
                {
                    'x': 130,
                    'y': 220,
                    'type': 'file'
                },
            ],
            'format': 'UDRO' if config.compression == 'store' else 'UDBZ',
        }, custom)

    for key, resource in (('icon', 'icon.icns'),
                          ('background', 'background.png')):
        if key in custom:
            if not specification[key]:
                # Explicitly unset, appdmg uses its default.
                del specification[key]
            elif not os.path.isabs(specification[key]):
                specification[key] = os.path.join(config.project_dir,
                                                  specification[key])
        elif context.has_resource(resource):
            specification[key] = context.resource_path(resource)
        elif key == 'icon':
            logger.warning(
                'Application icon is not set, the default icon will be used')

    app_path = os.path.join(app_out_dir, config.app_dir)
    for entry in specification['contents']:
        if entry.get('type') == 'file' and not entry.get('path'):
            entry['path'] = app_path
    return specification


async def create_dmg(context, app_out_dir):
    """Creates `<product>-<version>.dmg` in |app_out_dir|.

    Returns:
        The |model.ArtifactRecord|.
    """
    config = context.config
    target = os.path.join(app_out_dir,
                          '{}.dmg'.format(config.packaging_basename))
    logger.info('Creating DMG')
    specification = compute_dmg_specification(context, app_out_dir)
    logger.debug('appdmg: %s', json.dumps(specification, indent=2))
    await config.invoker.packager.create_dmg(config, target, specification)
    return context.dispatch_artifact_created(
        target, '{}.dmg'.format(config.artifact_basename))


async def archive_app(context, target, app_out_dir):
    """Archives the app bundle in |app_out_dir| for |target|.

    The `default` target is a zip archive classified `mac`, for compatibility
    with the platform's update mechanism. Any other archive target is
    classified `osx`.

    Returns:
        The |model.ArtifactRecord|.
    """
    config = context.config
    if target == model.DEFAULT:
        format, classifier = 'zip', 'mac'
    else:
        format, classifier = target, 'osx'
    logger.info('Creating macOS %s', format)
    file_name = '{}-{}.{}'.format(config.packaging_basename, classifier,
                                  format)
    out_file = os.path.join(app_out_dir, file_name)
    await config.invoker.packager.archive(config, format, app_out_dir,
                                          out_file)
    return context.dispatch_artifact_created(
        out_file, '{}-{}.{}'.format(config.artifact_basename, classifier,
                                    format))


async def package_in_distributable_format(context, out_dir, app_out_dir, arch):
    """Creates the distributable files of the requested targets.

    A disk image is created once if `dmg` or `default` is requested, and an
    archive for `default` and for each requested archive format. They are
    created concurrently. All of them complete before the first failure, if
    any, is raised.

    Args:
        context: The |packager.PackContext|.
        out_dir: The output directory of the run.
        app_out_dir: The directory containing the signed app bundle.
        arch: The architecture name.

    Returns:
        A list of |model.ArtifactRecord|.
    """
    targets = context.config.targets
    aws = []
    if model.DMG in targets or model.DEFAULT in targets:
        aws.append(create_dmg(context, app_out_dir))
    for target in targets:
        if target in (model.DMG, model.MAS):
            continue
        aws.append(archive_app(context, target, app_out_dir))
    return await model.gather_all(*aws)
