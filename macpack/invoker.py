# Copyright 2026 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.
"""
The invoker module is an abstraction over the commands module for running
command-line tools that cause specific side effects. An instance is used by
higher-level packaging modules that pass and return structured inputs (e.g.
`model.SignOptions`).
"""


class Base(object):
    """Base is the parent class for all objects that act as invokers. An
    invoker's lifecycle is:
        1. Declare any command-line arguments that are provided by the
           invoker's operations, using `register_arguments()`.
        2. Construction with the parsed arguments and the config.

    The `invoker.Interface` instance is owned by an instance of
    `config.PackConfig`.
    """

    @staticmethod
    def register_arguments(parser):
        """Registers Invoker-specific command line arguments.

        Args:
            parser: An `argparse.ArgumentParser` on which to register
                command-line arguments.
        """
        pass

    def __init__(self, args, config):
        """Creates a new invoker with the parsed command-line arguments.
        The passed `config` will own the instance of this invoker.

        Args:
            args: An `argparse.Namespace` after processing command-line
                arguments. See `Base.register_arguments`.
            config: The `config.PackConfig`.

        Raises:
            InvokerConfigError on an invalid argument or if the invoker
                is not compatible with the `config`.
        """
        pass


class InvokerConfigError(Exception):
    """An exception type used to report errors in configuring an invoker."""
    pass


class Interface(Base):
    """The `invoker.Interface` is the main interface for running high-level
    commands with side effects. It is composed of sub-invokers that have
    delegated responsibility for classes of operations. Every operation is a
    coroutine, so that slow external tools do not block one another.
    """

    class Builder(Base):
        """The Builder invoker produces the unsigned app bundle."""

        async def build_app(self, config, app_out_dir, arch, platform,
                            build_options, internal_signing):
            """Places the app bundle `config.app_dir` in `app_out_dir`.

            Args:
                config: The `config.PackConfig`.
                app_out_dir: The directory to place the app bundle in.
                arch: The architecture name, such as 'x64' or 'arm64'.
                platform: `model.PLATFORM_DARWIN` or `model.MAS`.
                build_options: The dict of build options for this variant.
                internal_signing: False if the builder must not sign the
                    bundle itself.
            """
            raise NotImplementedError('build_app')

    @property
    def builder(self):
        """Returns an instance of `invoker.Interface.Builder`."""
        raise NotImplementedError('builder')

    class Keychain(Base):
        """The Keychain invoker manipulates keychains and the identities in
        them.
        """

        async def create_keychain(self, name, password):
            """Creates and unlocks the keychain `name`."""
            raise NotImplementedError('create_keychain')

        async def import_certificate(self, name, path, password):
            """Imports the PKCS#12 file at `path` into the keychain `name`."""
            raise NotImplementedError('import_certificate')

        async def delete_keychain(self, name):
            """Deletes the keychain `name`. A keychain that does not exist is
            not an error.
            """
            raise NotImplementedError('delete_keychain')

        async def find_identities(self, keychain=None):
            """Lists the valid code signing identities.

            Args:
                keychain: The keychain to search, or None for the default
                    search list.

            Returns:
                A list of (sha1, name) tuples in a stable order.
            """
            raise NotImplementedError('find_identities')

    @property
    def keychain(self):
        """Returns an instance of `invoker.Interface.Keychain`."""
        raise NotImplementedError('keychain')

    class Signer(Base):
        """The Signer invoker is responsible for executing codesign-related
        operations.
        """

        async def sign(self, config, options):
            """Signs the app bundle described by `options`.

            Args:
                config: The `config.PackConfig`.
                options: The `model.SignOptions`.
            """
            raise NotImplementedError('sign')

        async def flat(self, config, options):
            """Produces a signed installer package from a signed app bundle.

            Args:
                config: The `config.PackConfig`.
                options: The `model.FlatOptions`.
            """
            raise NotImplementedError('flat')

    @property
    def signer(self):
        """Returns an instance of `invoker.Interface.Signer`."""
        raise NotImplementedError('signer')

    class Packager(Base):
        """The Packager invoker writes disk images and archives."""

        async def create_dmg(self, config, target, specification):
            """Writes a disk image.

            Args:
                config: The `config.PackConfig`.
                target: The path of the disk image to create.
                specification: The disk image layout dict, see
                    `artifacts.compute_dmg_specification`.
            """
            raise NotImplementedError('create_dmg')

        async def archive(self, config, format, app_out_dir, out_file):
            """Archives the app bundle in `app_out_dir`.

            Args:
                config: The `config.PackConfig`.
                format: One of `model.ARCHIVE_FORMATS`.
                app_out_dir: The directory containing the signed app bundle.
                out_file: The path of the archive to create.
            """
            raise NotImplementedError('archive')

    @property
    def packager(self):
        """Returns an instance of `invoker.Interface.Packager`."""
        raise NotImplementedError('packager')
