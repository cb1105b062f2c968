from setuptools import setup, find_namespace_packages

setup(
    name='ge-man',
    version='0.1.0',
    description='Manage GE-Proton and Wine-GE versions for Steam and Lutris',
    package_dir={'': 'src'},
    packages=find_namespace_packages(where='src', include=['geman', 'geman.*']),
    python_requires='>=3.11.4',
    install_requires=[
        'requests',
        'PyYAML',
        'rich',
        'platformdirs',
    ],
    extras_require={
        'test': [
            'pytest<9.1',
            'pytest-mock',
        ],
    },
    entry_points={
        'console_scripts': [
            'ge-man=geman.cli:main',
        ],
    },
)
