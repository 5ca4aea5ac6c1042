from setuptools import setup
from pathlib import Path

root_dir = Path(__file__).parent
readme = (root_dir / 'README.md').read_text()

setup(name='porepack'
	,version='0.1.0'
	,description='Classical density functional theory for fluids adsorbed in pores'
	,long_description=readme
	,long_description_content_type='text/markdown'
	,packages=['porepack']
	,python_requires='>=3.8'
    ,install_requires=['numpy',
                       'scipy',
                       'thermopack>=2.2',
                       'unyt',
                       'numba']
	,extras_require={'test' : ['pytest']}
	)
