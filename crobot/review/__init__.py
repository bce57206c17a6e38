"""Review engine: validate, dedupe, render and post findings."""