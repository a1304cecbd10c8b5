from setuptools import setup, find_packages

# anti-patterns be damned; Python should come up with a better system
with open('requirements.txt') as f:
    required = f.read().splitlines()

# read the version without importing the package
version = {}
with open("pygating/version.py") as f:
    exec(f.read(), version)


setup(
    name='pygating',
    version=version["__version__"],
    packages=find_packages(include=['pygating', 'pygating.*']),
    keywords="""medical physics MR-guided radiotherapy gating duty cycle beam shutter decision log deformROI""",
    description='Duty cycle and beam shutter transition analysis of MR-guided gating decision logs',
    long_description=open('README.rst').read(),
    long_description_content_type='text/x-rst',
    install_requires=required,
    extras_require={
        'developer': ['pytest', 'parameterized', 'nox'],
    },
    entry_points={
        'console_scripts': ['pygating=pygating.scripts:cli'],
    },
    python_requires='>=3.10',
    license='MIT',
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Healthcare Industry",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Natural Language :: English",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Medical Science Apps.",
        "Topic :: Scientific/Engineering :: Physics",
        "Topic :: Software Development :: Libraries"]
)
