"""
Package installation steps: base packages, PHP, WordPress files and Certbot.
"""
