from setuptools import setup, find_packages

setup(
    name='bench-market-engine',
    version='0.1.0',
    packages=find_packages(include=['bench', 'bench.*']),
    package_data={'bench.db': ['schema.sql']},
    install_requires=[
        'mpmath',
        'numpy',
        'pandas',
        'python-dotenv',
        'supabase',
        'typing_extensions',
    ],
    extras_require={
        'test': ['pytest'],
    },
    description='Constant-product AMM engine for multi-option sports prediction markets, with bet placement, settlement and Supabase persistence.',
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.11',
)
