"""
Generate VAPID keys for the dashboard's push notifications
"""
import base64

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from django.core.management.base import BaseCommand


def generate_vapid_keys():
    """
    Generate a VAPID key pair on the P-256 curve.

    Returns:
        tuple: (private_key_pem, public_key_base64url)
        - private_key_pem: PEM-encoded private key (for pywebpush)
        - public_key_base64url: uncompressed public point, base64url without padding (for the browser)
    """
    private_key = ec.generate_private_key(ec.SECP256R1())

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    ).decode('utf-8')

    public_bytes = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint
    )
    public_key_b64 = base64.urlsafe_b64encode(public_bytes).decode('utf-8').rstrip('=')

    return private_pem, public_key_b64


class Command(BaseCommand):
    help = 'Generate VAPID public/private keys for push notifications'

    def handle(self, *args, **options):
        private_key, public_key = generate_vapid_keys()

        self.stdout.write(self.style.SUCCESS('VAPID keys generated.'))
        self.stdout.write('\nVAPID_PUBLIC_KEY (browser):')
        self.stdout.write(public_key)
        self.stdout.write('\nVAPID_PRIVATE_KEY (server, keep secret):')
        self.stdout.write(private_key.strip())
        self.stdout.write(self.style.WARNING(
            '\nSet both as environment variables; never commit them to version control.'
        ))
