from setuptools import setup

setup(
    name='pprofstream',
    packages=[
        'pprofstream',
        'pprofstream.common',
        'pprofstream.profile_builder',
    ],
    version='0.1.0',
    license='apache-2.0',
    description='Streaming writer for gzipped pprof profiles',
    keywords=['pprof', 'profiling', 'protobuf'],
    python_requires='>=3.9',
    install_requires=[
        'protobuf',
    ],
    extras_require={
        'test': ['pytest'],
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
