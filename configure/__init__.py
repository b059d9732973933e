"""
Configuration steps: firewall, MariaDB, wp-config.php, Nginx and Certbot.
"""
