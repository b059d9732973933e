#!/usr/bin/env python3
# install.py
# -*- coding: utf-8 -*-
"""
Entry point for the WordPress installer.

Run as root on a fresh Debian or Ubuntu host, for example:

    sudo python3 install.py --domain blog.example.org --email ops@example.org
"""

import sys

from provision.main_installer import main

if __name__ == "__main__":
    sys.exit(main())
