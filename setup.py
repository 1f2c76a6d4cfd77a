from setuptools import setup

import forkpass

setup(
    name='ForkPass',
    packages=['forkpass'],
    description='Fork passing dining philosophers over message channels',
    version=forkpass.__version__,
    keywords=['python', 'dining philosophers', 'chandy misra',
              'mutual exclusion'],
    install_requires=[],
    extras_require={'test': ['pytest']},
    python_requires='>=3.7'
    )
