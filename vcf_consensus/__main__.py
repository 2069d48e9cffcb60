from vcf_consensus.run_consensus import cli

cli()
