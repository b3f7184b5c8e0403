"""Install the TOS API."""

from setuptools import setup, find_packages

setup(
    name='tosapi',
    version='0.1.0',
    packages=find_packages(exclude=['*test*']),
    py_modules=['main', 'wsgi'],
    install_requires=[
        "flask",
        "werkzeug",
        "requests",
        "google-api-core",
        "google-cloud-datastore>=2.15",
        "pytz",
        "python-json-logger",
    ],
    extras_require={
        'test': [
            "pytest",
            "pytest-mock",
        ]
    },
    zip_safe=False
)
