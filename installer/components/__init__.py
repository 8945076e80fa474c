"""
Component modules for the installer.

Each subpackage provides installation and configuration for one part of the
server (nginx, PHP-FPM, MySQL, ...). Importing a configurator module
registers it with the ComponentRegistry.
"""
