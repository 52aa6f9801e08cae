from models.provider_catalog import ProviderCatalog


class CostGenerator:
	"""Project the API cost of a training session before it runs.

	Every iteration is assumed to consume a fixed number of tokens
	(`tokens_per_iteration`, 1000 by default). The projection is

		tokens_per_iteration * planned_iterations * provider.cost_per_token

	rounded to 4 decimal places. The estimate is computed once when a session
	is created and is not revised as iterations run.
	"""

	DEFAULT_TOKENS_PER_ITERATION = 1000

	def __init__(self, catalog: ProviderCatalog, tokens_per_iteration: int | None = None):
		"""Create a CostGenerator.

		Args:
			catalog: Provider catalog holding per-token rates.
			tokens_per_iteration: Optional override for the per-iteration token estimate.
		"""
		self.catalog = catalog
		self.tokens_per_iteration = (
			self.DEFAULT_TOKENS_PER_ITERATION if tokens_per_iteration is None else tokens_per_iteration
		)
		if self.tokens_per_iteration <= 0:
			raise ValueError("tokens_per_iteration must be a positive integer.")

	def estimate(self, provider_key: str, planned_iterations: int) -> float:
		"""Return the projected cost in USD for `planned_iterations` iterations.

		Raises:
			UnknownProviderError: If the provider key is not in the catalog.
			ValueError: If planned_iterations is not a positive integer.
		"""
		provider = self.catalog.get(provider_key)
		if isinstance(planned_iterations, bool) or not isinstance(planned_iterations, int) or planned_iterations < 1:
			raise ValueError("planned_iterations must be a positive integer.")

		total_tokens = self.tokens_per_iteration * planned_iterations
		return round(total_tokens * provider.cost_per_token, 4)

	def breakdown(self, provider_key: str, planned_iterations: int) -> dict:
		"""Return the estimate together with the figures it was derived from."""
		projected = self.estimate(provider_key, planned_iterations)
		provider = self.catalog.get(provider_key)
		return {
			"provider": provider.key,
			"iterations": planned_iterations,
			"tokens_per_iteration": self.tokens_per_iteration,
			"total_tokens": self.tokens_per_iteration * planned_iterations,
			"cost_per_token": provider.cost_per_token,
			"projected_cost": projected,
		}
