"""Policy-area / subject-term association map built from BILLSTATUS bulk data.

Pipeline stages (see ``pipeline.py``):

- **Download**: mirror per-bill XML from the govinfo sitemap into a local cache
- **Aggregate**: count policy-area / subject-term co-occurrence across the cache
- **Cluster**: support filter, then relative-threshold soft assignment
- **Export**: write the sorted ``{policyArea: [terms]}`` JSON map

Run everything with: ``python scripts/build_map.py``
"""
