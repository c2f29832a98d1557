# Copyright 2026 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.
"""
The commands module wraps operations that have side-effects.
"""

import asyncio
import base64
import json
import os
import shutil
import subprocess
import tempfile
import urllib.request

from macpack import logger


def file_exists(path):
    return os.path.exists(path)


def delete_file_if_exists(path):
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


def make_dir(at):
    os.makedirs(at, exist_ok=True)


def list_dir(path):
    """Returns the sorted names of the entries in the directory at |path|, or
    an empty list if it does not exist.
    """
    try:
        return sorted(os.listdir(path))
    except FileNotFoundError:
        return []


def write_json(path, data):
    with open(path, 'w') as f:
        json.dump(data, f, indent=2)


def read_json(path):
    with open(path, 'r') as f:
        return json.load(f)


def write_base64(path, data):
    """Decodes the base64 string |data| and writes the bytes to |path|."""
    contents = base64.b64decode(data, validate=True)
    with open(path, 'wb') as f:
        f.write(contents)


def download(url, path):
    logger.info('Downloading %s', url)
    with urllib.request.urlopen(url) as response, open(path, 'wb') as f:
        shutil.copyfileobj(response, f)


def _redact(args, secrets):
    if not secrets:
        return args
    return ['***' if arg in secrets else arg for arg in args]


async def run_command_async(args, secrets=(), **kwargs):
    """Runs a command without blocking the event loop.

    Args:
        args: The command and its arguments.
        secrets: Arguments that must not appear in the log.

    Raises:
        subprocess.CalledProcessError if the command exits non-zero.
    """
    logger.info('Running command: %s', _redact(args, secrets))
    process = await asyncio.create_subprocess_exec(*args, **kwargs)
    returncode = await process.wait()
    if returncode:
        raise subprocess.CalledProcessError(returncode,
                                            _redact(args, secrets))


async def run_command_output_async(args, secrets=(), **kwargs):
    """Runs a command without blocking the event loop and returns its stdout.

    Raises:
        subprocess.CalledProcessError if the command exits non-zero. The
        exception carries the captured stdout and stderr.
    """
    logger.info('Running command: %s', _redact(args, secrets))
    process = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        **kwargs)
    stdout, stderr = await process.communicate()
    if process.returncode:
        raise subprocess.CalledProcessError(
            process.returncode,
            _redact(args, secrets),
            output=stdout,
            stderr=stderr)
    return stdout


class WorkDirectory(object):
    """
    WorkDirectory creates a temporary directory on entry and returns its path.
    On exit, the directory is destroyed.
    """

    def __init__(self, prefix='macpack_'):
        self._prefix = prefix
        self._workdir = None

    def __enter__(self):
        self._workdir = tempfile.mkdtemp(prefix=self._prefix)
        return self._workdir

    def __exit__(self, exc_type, value, traceback):
        shutil.rmtree(self._workdir)
        self._workdir = None
