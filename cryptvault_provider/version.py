"""CryptVault Provider Meta information.
   CryptVault Provider reconciles declared vaults, identities and values
   against the remote CryptVault protected store.
"""
__title__ = 'cryptvault_provider'
__description__ = (
   'CryptVault Provider reconciles declared vaults, identities '
   'and encrypted values against the CryptVault protected store.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/cryptvault-provider'
