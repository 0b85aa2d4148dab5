from portfolio_critic.cli import app

app()
