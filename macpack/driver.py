# Copyright 2026 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.
"""
The driver module provides the command line interface to the packaging
pipeline.
"""

import argparse
import asyncio
import logging
import os

from macpack import (commands, config, invoker, logger, model, pipeline,
                     standard_invoker)


def _create_config(args, invoker_factory):
    """Creates the |config.PackConfig| from the parsed command line.

    Args:
        args: The `argparse.Namespace`.
        invoker_factory: The 1-arg callable that creates the invoker.

    Returns:
        An instance of |config.PackConfig|.
    """
    config_args = model.pick(args, (
        'product_name',
        'name',
        'version',
        'targets',
        'compression',
        'build_resources_dir',
    ))
    config_args['app_source_dir'] = args.app_dir
    if args.identity is not None:
        config_args['osx'] = {'identity': args.identity}

    config_args['credentials'] = config.SigningCredentials(
        link=args.csc_link,
        key_password=args.csc_key_password,
        installer_link=args.csc_installer_link,
        installer_key_password=args.csc_installer_key_password)

    if args.config:
        return config.PackConfig.from_file(args.config, invoker_factory,
                                           **config_args)

    if not args.product_name or not args.version:
        raise config.ConfigError(
            '--product-name and --version are required without --config')
    return config.PackConfig(invoker=invoker_factory, **config_args)


def main(args):
    """Runs the packaging pipeline.

    Args:
        args: List of command line arguments.
    """
    parser = argparse.ArgumentParser(
        description='Sign and package a macOS app bundle for distribution.')
    parser.add_argument(
        '--app-dir',
        required=True,
        help='Path to the directory containing the built <product>.app '
        'bundle.')
    parser.add_argument(
        '--output',
        required=True,
        help='Path to the output directory. The signed app bundles and the '
        'distributable files will be placed here.')
    parser.add_argument(
        '--config',
        help='Path to a JSON build file with the productName, version, '
        'targets, osx, mas and osx-sign options.')
    parser.add_argument(
        '--product-name',
        help='The product name. Names the app bundle and the output files.')
    parser.add_argument(
        '--name',
        help='The name under which the artifacts are published. Defaults to '
        'the product name.')
    parser.add_argument('--version', help='The product version.')
    parser.add_argument(
        '--target',
        dest='targets',
        action='append',
        choices=model.TARGETS,
        help='A distribution target. May be specified multiple times. '
        'Defaults to `default`, a disk image and a zip archive.')
    parser.add_argument(
        '--arch',
        dest='archs',
        action='append',
        help='An architecture to package, such as x64 or arm64. May be '
        'specified multiple times. Defaults to x64.')
    parser.add_argument(
        '--build-resources',
        dest='build_resources_dir',
        help='The directory holding icon.icns, background.png and the '
        'entitlements files. Defaults to <project>/build.')
    parser.add_argument(
        '--compression',
        choices=config.COMPRESSION_LEVELS,
        help='The compression of the disk image and the archives.')
    parser.add_argument(
        '--identity',
        help='The name of the signing identity, without the certificate '
        'type prefix. The CSC_NAME environment variable takes precedence.')
    parser.add_argument(
        '--csc-link',
        help='The signing certificate: a https:// URL, a path to a .p12 file '
        'or its base64-encoded contents. Defaults to CSC_LINK.')
    parser.add_argument(
        '--csc-key-password',
        help='The password of the signing certificate. Defaults to '
        'CSC_KEY_PASSWORD.')
    parser.add_argument(
        '--csc-installer-link',
        help='The installer signing certificate for Mac App Store builds. '
        'Defaults to CSC_INSTALLER_LINK.')
    parser.add_argument(
        '--csc-installer-key-password',
        help='The password of the installer signing certificate. Defaults to '
        'CSC_INSTALLER_KEY_PASSWORD.')
    parser.add_argument(
        '--verbose', action='store_true', help='Enables debug logging.')

    invoker_cls = standard_invoker.Invoker
    invoker_cls.register_arguments(parser)

    args = parser.parse_args(args)

    logger.setLevel(logging.DEBUG if args.verbose else logging.INFO)

    def _create_invoker(pack_config):
        try:
            return invoker_cls(args, pack_config)
        except invoker.InvokerConfigError as e:
            parser.error(str(e))

    try:
        pack_config = _create_config(args, _create_invoker)
    except config.ConfigError as e:
        parser.error(str(e))

    out_dir = os.path.abspath(args.output)
    if not commands.file_exists(out_dir):
        commands.make_dir(out_dir)

    try:
        records = asyncio.run(
            pipeline.build(pack_config, out_dir, archs=args.archs or ('x64',)))
    except config.ConfigError as e:
        parser.error(str(e))

    for record in records:
        logger.info('Artifact %s: %s', record.suggested_name, record.path)
