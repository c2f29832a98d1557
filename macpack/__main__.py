# Copyright 2026 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

import sys

from macpack import driver


def main():
    driver.main(sys.argv[1:])


if __name__ == '__main__':
    main()
