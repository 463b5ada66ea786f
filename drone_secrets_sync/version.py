"""Drone Secrets Sync Meta information.
   Drone Secrets Sync keeps Drone CI secrets in line with a desired state.
"""
__title__ = 'drone_secrets_sync'
__description__ = (
   'Synchronise secrets into Drone CI write-only secret stores '
   'using content-addressed marker entries.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 colin-nolan'
__author__ = 'colin-nolan'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/colin-nolan/drone-secrets-sync'
