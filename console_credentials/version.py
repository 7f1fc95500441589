"""Console Credentials Meta information.
   Console Credentials keeps named credential records behind a secret key,
   sharing a single encrypted blob between several key holders.
"""
__title__ = 'console_credentials'
__description__ = (
   'Password-protected credential records stored as independently '
   'encrypted partitions inside one shared blob.'
)
__version__ = '0.3.0'
__license__ = 'Apache-2.0'
