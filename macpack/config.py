# Copyright 2026 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

import collections
import os

from macpack import commands, model

COMPRESSION_LEVELS = ('store', 'normal', 'maximum')


class ConfigError(Exception):
    """Raised when the requested packaging cannot proceed as configured."""
    pass


class SigningEnvironment(
        collections.namedtuple('SigningEnvironment', [
            'csc_link', 'csc_key_password', 'csc_name', 'csc_installer_link',
            'csc_installer_key_password'
        ],
                               defaults=(None,) * 5)):
    """A snapshot of the signing-related environment variables, taken once per
    packaging run.
    """

    @classmethod
    def from_environ(cls, environ=None):
        if environ is None:
            environ = os.environ
        return cls(
            csc_link=environ.get('CSC_LINK'),
            csc_key_password=environ.get('CSC_KEY_PASSWORD'),
            csc_name=environ.get('CSC_NAME'),
            csc_installer_link=environ.get('CSC_INSTALLER_LINK'),
            csc_installer_key_password=environ.get(
                'CSC_INSTALLER_KEY_PASSWORD'))


class SigningCredentials(object):
    """The certificates to import into an ephemeral keychain.

    A link is a https:// URL, a path to a .p12 file, or the base64-encoded
    contents of one.
    """

    def __init__(self,
                 link=None,
                 key_password=None,
                 installer_link=None,
                 installer_key_password=None):
        self.link = link
        self.key_password = key_password
        self.installer_link = installer_link
        self.installer_key_password = installer_key_password

    @classmethod
    def resolve(cls, explicit, environment):
        """Combines explicitly configured credentials with the environment.
        Each explicit value that is set wins over its environment variable.

        Args:
            explicit: A |SigningCredentials| or None.
            environment: A |SigningEnvironment|.
        """
        if explicit is None:
            explicit = cls()

        def first(value, fallback):
            return value if value is not None else fallback

        return cls(
            link=first(explicit.link, environment.csc_link),
            key_password=first(explicit.key_password,
                               environment.csc_key_password),
            installer_link=first(explicit.installer_link,
                                 environment.csc_installer_link),
            installer_key_password=first(
                explicit.installer_key_password,
                environment.csc_installer_key_password))

    def validate(self):
        if self.link is not None and self.key_password is None:
            raise ConfigError('cscLink is set, but cscKeyPassword not')
        if (self.installer_link is not None and
                self.installer_key_password is None):
            raise ConfigError(
                'cscInstallerLink is set, but cscInstallerKeyPassword not')

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __repr__(self):
        # Omits the passwords.
        return 'SigningCredentials(link={0.link}, ' \
                'installer_link={0.installer_link})'.format(self)


def normalize_targets(targets):
    """Returns |targets| as a tuple of unique target names in request order.

    Raises:
        ConfigError if a target is not supported.
    """
    if not targets:
        return (model.DEFAULT,)
    result = []
    for target in targets:
        if target in result:
            continue
        if target not in model.TARGETS:
            raise ConfigError('Unknown target "{}", supported: {}'.format(
                target, ', '.join(model.TARGETS)))
        result.append(target)
    return tuple(result)


class PackConfig(object):
    """Packaging configuration for one run.

    A PackConfig holds the product metadata, the requested targets and the
    options that control signing and packaging. The signing environment is
    read once when the config is created.
    """

    def __init__(self,
                 invoker=None,
                 product_name=None,
                 version=None,
                 name=None,
                 app_source_dir=None,
                 project_dir=None,
                 build_resources_dir=None,
                 targets=None,
                 compression=None,
                 osx=None,
                 mas=None,
                 osx_sign=None,
                 credentials=None,
                 environment=None):
        """Creates a PackConfig.

        Args:
            invoker: The operation invoker. This may be either an instantiated
                |invoker.Interface| or a 1-arg callable that takes this
                instance of |PackConfig| and returns an instance of
                |invoker.Interface|.
            product_name: The product name, used for the app bundle and for
                artifact file names. Must not be None.
            version: The product version. Must not be None.
            name: The name used for suggested artifact names. Defaults to
                |product_name|.
            app_source_dir: The directory containing the built app bundle.
            project_dir: The project directory. Defaults to the current
                directory.
            build_resources_dir: The directory probed for conventionally named
                resources such as icon.icns. Defaults to
                `<project_dir>/build`.
            targets: A sequence of target names. Defaults to ('default',).
            compression: One of |COMPRESSION_LEVELS|. Defaults to 'normal'.
            osx: Dict of macOS build options.
            mas: Dict of Mac App Store build options, merged over |osx| for the
                Mac App Store build.
            osx_sign: Dict of operator overrides for the signer options.
            credentials: Explicit |SigningCredentials|, merged with the
                environment.
            environment: A |SigningEnvironment|. Defaults to a snapshot of
                os.environ.
        """
        assert product_name
        assert version
        assert invoker is not None
        if compression is None:
            compression = 'normal'
        if compression not in COMPRESSION_LEVELS:
            raise ConfigError('Unknown compression "{}", supported: {}'.format(
                compression, ', '.join(COMPRESSION_LEVELS)))
        if environment is None:
            environment = SigningEnvironment.from_environ()

        self._product_name = product_name
        self._version = version
        self._name = name or product_name
        self._project_dir = os.path.abspath(project_dir or os.getcwd())
        self._app_source_dir = os.path.abspath(app_source_dir or
                                               self._project_dir)
        self._build_resources_dir = os.path.abspath(
            build_resources_dir or os.path.join(self._project_dir, 'build'))
        self._targets = normalize_targets(targets)
        self._compression = compression
        self._osx = dict(osx or {})
        self._mas = dict(mas or {})
        self._osx_sign = dict(osx_sign or {})
        self._environment = environment
        self._credentials = SigningCredentials.resolve(credentials,
                                                       environment)
        if callable(invoker):
            # Create a placeholder for the invoker in case the initializer
            # accesses the field on the config.
            self._invoker = None
            invoker = invoker(self)
        self._invoker = invoker

    @classmethod
    def from_file(cls, path, invoker, **overrides):
        """Creates a PackConfig from a JSON build file.

        The file uses the keys `productName`, `name`, `version`, `targets`,
        `compression`, `directories.buildResources`, `osx`, `mas` and
        `osx-sign`. Relative paths are resolved against the file's directory.
        Keyword |overrides| that are not None take precedence. The `osx`,
        `mas` and `osx_sign` overrides are merged into the file's options.
        """
        data = commands.read_json(path)
        project_dir = os.path.dirname(os.path.abspath(path))
        build_resources_dir = data.get('directories',
                                       {}).get('buildResources')
        if build_resources_dir is not None:
            build_resources_dir = os.path.join(project_dir,
                                               build_resources_dir)
        config_args = {
            'product_name': data.get('productName'),
            'name': data.get('name'),
            'version': data.get('version'),
            'project_dir': project_dir,
            'build_resources_dir': build_resources_dir,
            'targets': data.get('targets'),
            'compression': data.get('compression'),
            'osx': data.get('osx'),
            'mas': data.get('mas'),
            'osx_sign': data.get('osx-sign'),
        }
        for key, value in overrides.items():
            if value is None:
                continue
            if key in ('osx', 'mas', 'osx_sign'):
                value = model.deep_merge(config_args.get(key), value)
            config_args[key] = value
        if not config_args['product_name'] or not config_args['version']:
            raise ConfigError(
                '{} must specify productName and version'.format(path))
        return cls(invoker=invoker, **config_args)

    @property
    def invoker(self):
        """Returns the |invoker.Interface| instance for running external
        tools.
        """
        return self._invoker

    @property
    def product_name(self):
        """Returns the product name. It names the .app bundle and the files
        written to disk.
        """
        return self._product_name

    @property
    def name(self):
        """Returns the name under which artifacts are published."""
        return self._name

    @property
    def version(self):
        return self._version

    @property
    def project_dir(self):
        return self._project_dir

    @property
    def app_source_dir(self):
        """Returns the directory containing the built, unsigned app bundle."""
        return self._app_source_dir

    @property
    def build_resources_dir(self):
        return self._build_resources_dir

    @property
    def targets(self):
        """Returns the tuple of unique requested targets, in request order."""
        return self._targets

    @property
    def compression(self):
        return self._compression

    @property
    def osx_options(self):
        """Returns the macOS build options dict."""
        return self._osx

    @property
    def mas_options(self):
        """Returns the Mac App Store build options dict, before merging with
        |osx_options|.
        """
        return self._mas

    @property
    def sign_overrides(self):
        """Returns the operator overrides for the signer options."""
        return self._osx_sign

    @property
    def identity(self):
        """Returns the explicitly configured identity name, if any. The
        CSC_NAME environment variable takes precedence over it.
        """
        return self._osx.get('identity')

    @property
    def credentials(self):
        """Returns the |SigningCredentials| after merging the environment."""
        return self._credentials

    @property
    def environment(self):
        """Returns the |SigningEnvironment| snapshot for the run."""
        return self._environment

    # Computed Properties ######################################################

    @property
    def app_dir(self):
        """Returns the name of the app bundle directory."""
        return '{.product_name}.app'.format(self)

    @property
    def packaging_basename(self):
        """Returns the file basename of the packaged output files."""
        return '{0.product_name}-{0.version}'.format(self)

    @property
    def artifact_basename(self):
        """Returns the basename under which packaged files are published."""
        return '{0.name}-{0.version}'.format(self)
