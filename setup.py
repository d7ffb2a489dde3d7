"""
Setup script for NonMessenger core - identity keys, message encryption and contact pairing.

This library provides:
- RSA-4096 device identities
- Identities recoverable from 8- or 16-word phrases
- Hybrid RSA-OAEP + AES-256-GCM message encryption
- QR contact pairing payloads with verification messages
- Optional QR code rendering and scanning
"""

from setuptools import setup, find_packages
import os

this_directory = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(this_directory, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    name='nonmessenger-core',
    version='1.0.0',
    author='NonMessenger Team',
    description='Cryptographic identity, hybrid message encryption and QR pairing for the NonMessenger peer-to-peer messenger',
    long_description=long_description,
    long_description_content_type='text/markdown',
    url='https://github.com/nonmessenger/nonmessenger',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Topic :: Communications :: Chat',
        'Topic :: Security :: Cryptography',
        'License :: OSI Approved :: GNU General Public License v3 (GPLv3)',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
    install_requires=[
        'cryptography>=42.0.4',
        'mnemonic>=0.20',
        'tomli>=2.0.1; python_version<"3.11"',
    ],
    extras_require={
        'qr': [
            'qrcode>=7.4',
            'pillow>=10.0.0',
            'pyzbar>=0.1.9',
        ],
        'test': [
            'pytest>=7.4.0',
        ],
    },
)
