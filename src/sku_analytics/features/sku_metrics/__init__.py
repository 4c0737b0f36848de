"""SKU size metrics endpoints

Reconciles stock on hand, stock on order, sales and open orders per style and
size into one dense record per size. The merge happens in ``service``; the
warehouse only answers the individual fact queries defined in ``queries``."""
