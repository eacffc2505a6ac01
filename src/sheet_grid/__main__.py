from sheet_grid.cli import app

app()
