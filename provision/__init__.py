# provision/__init__.py
# -*- coding: utf-8 -*-
"""
Provisioning pipeline for a single-host WordPress stack (Nginx, PHP-FPM,
MariaDB, Certbot).
"""
