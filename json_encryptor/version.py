"""JSON Encryptor Meta information.
   JSON Encryptor derives a key from a password and salt and uses it to
   encrypt JSON documents into opaque envelopes, or to decrypt them back.
"""
__title__ = 'json_encryptor'
__description__ = (
   'Password-based AES-GCM encryption of JSON documents, '
   'with a session-held non-extractable key.'
)
__version__ = '0.3.0'
__license__ = 'MIT'
