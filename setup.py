"""
Packaging for serialhost. Tests sit beside the modules they test and are run with
`python -m unittest discover -s src -p "*_test.py"`; integration tests against pyserial's
loopback device live under `integrate/`.
"""

from setuptools import setup

setup(
    name='serialhost',
    version='0.0.1',
    description='Keeps a serial port open, reconnecting as needed, and hands received text to a callback.',
    url='',
    author='',
    author_email='',
    license='LGPL',
    package_dir={'': 'src'},
    packages=['serialhost', 'serialhost.config', 'serialhost.support', 'serialhost.transport'],
    package_data={'serialhost.config': ['serialhost.schema.cfg']},
    python_requires='>=3.6',
    install_requires=[
        'pyserial>=3.4',
        'configobj>=5.0.8',
    ],
    extras_require={
        'test': [
            'PyHamcrest>=2.0',
            'timeout-decorator>=0.5',
        ]
    },
    zip_safe=False,
)
