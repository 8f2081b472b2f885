from setuptools import setup

setup(
    name='nsgallow',
    version='0.1',
    py_modules=['nsgallow'],
    packages=['function'],
    python_requires='>=3.11',
    install_requires=[
        'Click',
        'crossplane-function-sdk-python',
        'grpcio',
        'protobuf',
        'PyYAML',
        'requests',
        'urllib3'
    ],
    extras_require={
        'test': ['pytest', 'structlog'],
    },
    entry_points='''
        [console_scripts]
        nsgallow=nsgallow:cli
    ''',
)
